"""CLI: benchmark the motion pipeline on a video.

Print-oriented (human-readable); optionally writes a JSON report suitable for
regression tracking. The first frame is the background, as in playback.
"""

from __future__ import annotations

import argparse
import json
import time
from pathlib import Path
from typing import Any

import numpy as np

from framediff.core.analytics.pipeline import MotionPipeline, PipelineConfig
from framediff.core.video_sources.base import FileSource, SourceUnavailableError

STAGES = ("diff_ms", "threshold_ms", "denoise_ms", "contours_ms", "overlay_ms", "pipeline_ms")


def _percentiles(values: list[float]) -> dict[str, float]:
    """Compute a small set of percentiles for a list of timings."""

    if not values:
        return {"min": 0.0, "p50": 0.0, "p95": 0.0, "max": 0.0, "mean": 0.0}
    arr = np.array(values, dtype=np.float64)
    return {
        "min": float(np.min(arr)),
        "p50": float(np.percentile(arr, 50)),
        "p95": float(np.percentile(arr, 95)),
        "max": float(np.max(arr)),
        "mean": float(np.mean(arr)),
    }


def run_once(video_path: str, config: PipelineConfig, max_frames: int = 0) -> dict[str, Any]:
    """Run one pass over `video_path` (no looping) and collect stage timings."""

    try:
        source = FileSource(video_path)
    except SourceUnavailableError:
        raise SystemExit(f"Cannot open video: {video_path}")

    try:
        background = source.read()
        if background is None:
            raise SystemExit(f"Video has no frames: {video_path}")
        pipeline = MotionPipeline(background, config)

        samples: dict[str, list[float]] = {name: [] for name in STAGES}
        detections = 0
        frames = 0
        t_start = time.perf_counter()
        while True:
            frame = source.read()
            if frame is None:
                break
            frames += 1
            outputs = pipeline.process(frame, frames + 1)
            if outputs.detection is not None:
                detections += 1
            for name in STAGES:
                samples[name].append(outputs.timings.get(name, 0.0))
            if max_frames and frames >= max_frames:
                break
        wall_s = time.perf_counter() - t_start
    finally:
        source.close()

    return {
        "video": video_path,
        "frames": frames,
        "frames_with_detection": detections,
        "fps": (frames / wall_s) if wall_s > 0 else 0.0,
        "config": {
            "threshold": config.threshold,
            "erode_iterations": config.erode_iterations,
            "dilate_iterations": config.dilate_iterations,
        },
        "timings": {name: _percentiles(vals) for name, vals in samples.items()},
    }


def _print_report(report: dict[str, Any]) -> None:
    print(f"{report['video']}: {report['frames']} frames, {report['fps']:.1f} fps, "
          f"{report['frames_with_detection']} with detection")
    for name, stats in report["timings"].items():
        print(
            f"  {name:<13} mean={stats['mean']:.3f} p50={stats['p50']:.3f} "
            f"p95={stats['p95']:.3f} max={stats['max']:.3f}"
        )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Benchmark the motion pipeline on a video")
    parser.add_argument("--input", required=True, help="Path to video file")
    parser.add_argument("--threshold", type=int, default=5)
    parser.add_argument("--erode", type=int, default=3)
    parser.add_argument("--dilate", type=int, default=3)
    parser.add_argument("--max-frames", type=int, default=0, help="Limit frames for quick runs")
    parser.add_argument("--output", help="Optional JSON report path")
    args = parser.parse_args(argv)

    config = PipelineConfig(
        threshold=args.threshold,
        erode_iterations=args.erode,
        dilate_iterations=args.dilate,
    )
    report = run_once(args.input, config, max_frames=args.max_frames)
    _print_report(report)
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
        print(f"Wrote report to {out_path}")


if __name__ == "__main__":
    main()
