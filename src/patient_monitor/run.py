#!/usr/bin/env python3
"""
Privacy-aware patient monitoring client.

Captures the local camera, pixelates the face region of every displayed frame,
samples frames for remote behavioral analysis and shows the returned
indicators next to the live view, together with the service's alert feed and
monitoring status.

Usage examples
--------------
# Live monitoring against a local service
python -m patient_monitor.run --api-base http://127.0.0.1:8000 --device /dev/video0

# Headless (no window), debug logging
python -m patient_monitor.run --no-window --log-level DEBUG

# One-shot analysis of a recorded video
python -m patient_monitor.run --upload-video /path/to/clip.mp4

Keys (window mode)
------------------
q : stop monitoring and exit
c : clear the alert history
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import List, Optional, Union

from .client import MonitorClient, MonitorClientError
from .config import MonitorConfig
from .scheduler import TaskScheduler
from .session import Session
from .utils.logging import LoggingConfig, get_logging_config, setup_logging
from .video.capture import CaptureSource
from .video.display import HeadlessDisplay, WindowDisplay

logger = logging.getLogger(__name__)


def _device(value: str) -> Union[str, int]:
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    defaults = MonitorConfig()
    ap = argparse.ArgumentParser("Privacy-aware patient monitoring client")

    # Service
    ap.add_argument("--api-base", default=defaults.api_base, help="Analysis service base URL.")
    ap.add_argument(
        "--timeout",
        type=float,
        default=defaults.request_timeout,
        help="Per-request HTTP timeout in seconds.",
    )

    # Capture
    ap.add_argument(
        "--device",
        type=_device,
        default=defaults.device,
        help="Video device path (e.g., /dev/video0) or camera index.",
    )
    ap.add_argument("--width", type=int, default=defaults.width, help="Capture width.")
    ap.add_argument("--height", type=int, default=defaults.height, help="Capture height.")
    ap.add_argument("--fps", type=int, default=defaults.fps, help="Capture frame rate.")

    # Privacy / sampling
    ap.add_argument(
        "--pixel-size",
        type=int,
        default=defaults.pixel_size,
        help="Pixelation block size of the face region.",
    )
    ap.add_argument(
        "--analysis-interval",
        type=float,
        default=defaults.analysis_interval,
        help="Seconds between analysis samples.",
    )
    ap.add_argument(
        "--poll-interval",
        type=float,
        default=defaults.poll_interval,
        help="Seconds between alert/status polls.",
    )
    ap.add_argument(
        "--alerts-limit", type=int, default=defaults.alerts_limit, help="Alerts per fetch."
    )
    ap.add_argument(
        "--jpeg-quality",
        type=int,
        default=defaults.jpeg_quality,
        help="JPEG quality of analysis snapshots.",
    )
    ap.add_argument(
        "--unmasked-snapshots",
        action="store_true",
        help="Send analysis snapshots without pixelating the face region.",
    )
    ap.add_argument(
        "--allow-overlap",
        action="store_true",
        help="Allow a new analysis request while the previous one is in flight.",
    )

    # UI
    ap.add_argument(
        "--refresh-hz",
        type=float,
        default=defaults.refresh_hz,
        help="Display refresh rate of the render loop.",
    )
    ap.add_argument(
        "--no-window", action="store_true", help="Disable display window (headless)."
    )
    ap.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO).")

    # One-shot
    ap.add_argument(
        "--upload-video",
        metavar="PATH",
        default=None,
        help="Upload a recorded video for analysis, print the result and exit.",
    )
    return ap


def config_from_args(args: argparse.Namespace) -> MonitorConfig:
    return MonitorConfig(
        api_base=args.api_base,
        device=args.device,
        width=args.width,
        height=args.height,
        fps=args.fps,
        refresh_hz=args.refresh_hz,
        pixel_size=args.pixel_size,
        analysis_interval=args.analysis_interval,
        poll_interval=args.poll_interval,
        alerts_limit=args.alerts_limit,
        jpeg_quality=args.jpeg_quality,
        request_timeout=args.timeout,
        mask_snapshots=not args.unmasked_snapshots,
        allow_overlapping_analysis=args.allow_overlap,
        show_window=not args.no_window,
    )


def upload_video(config: MonitorConfig, path: str) -> int:
    client = MonitorClient(config.api_base, config.request_timeout)
    try:
        result = client.upload_video(path)
    except (MonitorClientError, OSError) as e:
        logger.error(f"Video analysis failed: {e}")
        return 1
    finally:
        client.close()
    print(json.dumps(result, indent=2))
    return 0


async def run_monitor(config: MonitorConfig) -> int:
    """
    Run a monitoring session until SIGINT/SIGTERM or the `q` key.

    Returns
    -------
    int
        Process exit code; 1 if the camera could not be acquired.
    """
    client = MonitorClient(config.api_base, config.request_timeout)
    capture = CaptureSource(config.device, config.width, config.height, config.fps)
    display = WindowDisplay(config.window_name) if config.show_window else HeadlessDisplay()
    scheduler = TaskScheduler()
    session = Session(config, capture, client, display, scheduler)

    done = asyncio.Event()
    session.on_quit = done.set
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, done.set)
        except NotImplementedError:
            logger.warning("Signal handlers are not supported on this platform")

    session.open()
    exit_code = 0
    try:
        if await session.start():
            await done.wait()
        else:
            logger.error(session.last_error)
            exit_code = 1
    finally:
        await session.close()
        await scheduler.shutdown()
        client.close()
    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    log_config: LoggingConfig = get_logging_config()
    if args.log_level:
        log_config.log_level = args.log_level.upper()
    setup_logging("patient_monitor", log_config)

    try:
        config = config_from_args(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    if args.upload_video:
        return upload_video(config, args.upload_video)
    return asyncio.run(run_monitor(config))


if __name__ == "__main__":
    sys.exit(main())
