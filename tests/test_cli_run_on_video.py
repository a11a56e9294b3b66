import json
import os
import subprocess
import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

import framediff.tools.run_on_video as rov
from framediff.core.analytics.pipeline import MotionPipeline


@pytest.fixture(autouse=True)
def _no_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("FDIFF_CONFIG", str(tmp_path / "missing.yml"))


def _make_video(path: Path, frames: int = 5, size=(96, 72)) -> None:
    fourcc = cv2.VideoWriter_fourcc(*"MJPG")
    writer = cv2.VideoWriter(str(path), fourcc, 5.0, size)
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video on this platform")
    for i in range(frames):
        frame = np.zeros((size[1], size[0], 3), dtype=np.uint8)
        if i:
            frame[20:44, 10 + 8 * i : 34 + 8 * i] = 255
        writer.write(frame)
    writer.release()

    cap = cv2.VideoCapture(str(path))
    ok, _ = cap.read()
    cap.release()
    if not ok:
        pytest.skip("OpenCV backend cannot read generated video on this platform")


def test_summarize_frame_outputs():
    background = np.zeros((60, 80, 3), dtype=np.uint8)
    frame = background.copy()
    frame[10:30, 10:30] = 255
    summary = rov.summarize(MotionPipeline(background).process(frame, frame_index=4))
    assert summary["frame_index"] == 4
    assert summary["detection"]["bbox"] == [10, 10, 20, 20]
    assert summary["detection"]["center"] == [20, 20]

    empty = rov.summarize(MotionPipeline(background).process(background, frame_index=1))
    assert empty["detection"] is None


def test_headless_requires_frame_budget():
    with pytest.raises(SystemExit):
        rov.main(["--input", "clip.avi", "--headless"])


def test_output_requires_headless():
    with pytest.raises(SystemExit):
        rov.main(["--input", "clip.avi", "--max-frames", "2", "--output", "out.json"])


def test_missing_input_is_reported():
    with pytest.raises(SystemExit):
        rov.main(["--headless", "--max-frames", "2"])


def test_unopenable_video_is_reported(tmp_path: Path):
    missing = tmp_path / "nope.avi"
    with pytest.raises(SystemExit) as excinfo:
        rov.main(["--input", str(missing), "--headless", "--max-frames", "2"])
    assert "Unable to open" in str(excinfo.value)


def test_invalid_threshold_is_rejected():
    with pytest.raises(ValueError):
        rov.main(["--input", "clip.avi", "--threshold", "300", "--headless", "--max-frames", "1"])


def test_headless_run_writes_summaries(tmp_path: Path):
    video_path = tmp_path / "moving.avi"
    out_path = tmp_path / "out" / "summaries.json"
    _make_video(video_path)

    rov.main(
        [
            "--input",
            str(video_path),
            "--headless",
            "--max-frames",
            "6",
            "--output",
            str(out_path),
        ]
    )

    data = json.loads(out_path.read_text())
    assert len(data) == 6
    # Four frames after the background, then the loop restarts at frame 1.
    assert [d["frame_index"] for d in data] == [2, 3, 4, 5, 1, 2]
    assert data[0]["detection"] is not None
    assert data[4]["detection"] is None


def test_run_on_video_module_cli(tmp_path: Path):
    video_path = tmp_path / "moving.avi"
    out_path = tmp_path / "out.json"
    _make_video(video_path)

    env = os.environ.copy()
    env["PYTHONPATH"] = env.get("PYTHONPATH", ".") + os.pathsep + str(Path(__file__).resolve().parents[1])

    cmd = [
        sys.executable,
        "-m",
        "framediff.tools.run_on_video",
        "--input",
        str(video_path),
        "--headless",
        "--max-frames",
        "2",
        "--output",
        str(out_path),
    ]
    result = subprocess.run(cmd, env=env, capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
    assert len(json.loads(out_path.read_text())) == 2


class _ListSource:
    def __init__(self, frames):
        self._frames = frames
        self._pos = 0

    def read(self):
        if self._pos >= len(self._frames):
            return None
        self._pos += 1
        return self._frames[self._pos - 1]

    def rewind(self):
        self._pos = 0

    def close(self):
        pass


def test_headless_run_with_space_as_exit_key(monkeypatch, tmp_path: Path):
    frames = [np.zeros((40, 40, 3), dtype=np.uint8) for _ in range(3)]
    monkeypatch.setattr(rov, "FileSource", lambda _path: _ListSource(frames))
    monkeypatch.setenv("FDIFF_EXIT_KEY", "32")
    out_path = tmp_path / "out.json"

    rov.main(["--input", "clip.avi", "--headless", "--max-frames", "3", "--output", str(out_path)])

    assert [d["frame_index"] for d in json.loads(out_path.read_text())] == [2, 3, 1]


def test_missing_config_file_is_reported(tmp_path: Path):
    with pytest.raises(SystemExit) as excinfo:
        rov.main(["--config", str(tmp_path / "absent.yml"), "--input", "clip.avi"])
    assert "Config file not found" in str(excinfo.value)
