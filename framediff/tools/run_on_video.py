"""CLI: step through a video with the motion detector.

Interactive by default: six windows show every processing stage and any key
advances to the next frame (Esc quits). With `--headless` the frames are
processed without a screen and per-frame detection summaries can be written to
JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from framediff.core.config.settings import (
    MotionSettings,
    load_settings,
    overlay_style_from_settings,
    pipeline_config_from_settings,
    settings_to_dict,
)
from framediff.core.display.windows import (
    FrameBudgetSignals,
    KeyboardSignals,
    NullDisplay,
    OpenCVWindows,
)
from framediff.core.playback.controller import PlaybackController
from framediff.core.types import FrameOutputs
from framediff.core.video_sources.base import FileSource, SourceUnavailableError

logger = logging.getLogger(__name__)


def summarize(outputs: FrameOutputs) -> dict[str, Any]:
    """JSON-friendly view of one processed frame."""

    det = outputs.detection
    return {
        "frame_index": outputs.frame_index,
        "elapsed_ms": outputs.elapsed_ms,
        "detection": None
        if det is None
        else {
            "area": det.area,
            "bbox": list(det.bbox),
            "center": list(det.center),
        },
    }


def _resolve_settings(args: argparse.Namespace) -> MotionSettings:
    """Load settings and apply command-line overrides on top."""

    try:
        settings = load_settings(Path(args.config) if args.config else None)
    except FileNotFoundError as exc:
        raise SystemExit(str(exc))
    overrides = {
        "video_path": args.input,
        "threshold": args.threshold,
        "erode_iterations": args.erode,
        "dilate_iterations": args.dilate,
        "log_level": args.log_level,
    }
    merged = {**settings_to_dict(settings), **{k: v for k, v in overrides.items() if v is not None}}
    return MotionSettings(**merged)


def run(args: argparse.Namespace) -> int:
    settings = _resolve_settings(args)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.video_path:
        raise SystemExit("No video path given (use --input or FDIFF_VIDEO_PATH)")
    if args.headless and args.max_frames <= 0:
        raise SystemExit("--headless needs --max-frames > 0 (playback loops forever)")
    if args.output and not args.headless:
        raise SystemExit("--output is only supported together with --headless")

    try:
        source = FileSource(settings.video_path)
    except SourceUnavailableError:
        raise SystemExit(f"Unable to open {settings.video_path}")

    outputs: list[dict[str, Any]] = []
    if args.headless:
        display = NullDisplay()
        signals = FrameBudgetSignals(args.max_frames, exit_key=settings.exit_key)
    else:
        display = OpenCVWindows()
        signals = KeyboardSignals()
        print(f"{settings.video_path} is opened")
        print("Press ESCAPE key in any image window to close the program.")
        print("Press other key in any image window to move to next frame.")

    controller = PlaybackController(
        source,
        signals,
        display=display,
        config=pipeline_config_from_settings(settings),
        style=overlay_style_from_settings(settings),
        exit_key=settings.exit_key,
        on_frame=lambda o: outputs.append(summarize(o)),
    )
    try:
        processed = controller.run()
    except SourceUnavailableError:
        raise SystemExit(f"Unable to open {settings.video_path}")
    finally:
        source.close()
        display.close()

    logger.info("Processed %s frames", processed)
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(outputs, f, indent=2)
        print(f"Wrote {len(outputs)} frame summaries to {out_path}")
    return processed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect the moving object in a video, frame by frame")
    parser.add_argument("--input", help="Path to video file (overrides video_path setting)")
    parser.add_argument("--config", help="YAML settings file (default: $FDIFF_CONFIG)")
    parser.add_argument("--threshold", type=int, help="Binarization threshold, 0..255")
    parser.add_argument("--erode", type=int, help="Erosion iterations")
    parser.add_argument("--dilate", type=int, help="Dilation iterations")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING...")
    parser.add_argument(
        "--headless", action="store_true", help="No windows; advance automatically"
    )
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N processed frames")
    parser.add_argument("--output", help="Where to save JSON summaries (headless only)")
    return parser


def main(argv: list[str] | None = None) -> None:
    run(build_parser().parse_args(argv))


if __name__ == "__main__":
    main()
