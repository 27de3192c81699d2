"""Command line entry point: run the coin detection pipeline on a camera, video or image."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence, Tuple

import cv2

from coin_vision.config import Config, load_config
from coin_vision.core.detector import HoughCoinDetector
from coin_vision.infra import configure_logging, install_exception_hook
from coin_vision.services import (
    FrameSource,
    PipelineDiagnostics,
    ProcessingPipeline,
    QueuedDispatcher,
    StaticImageSource,
    VideoCaptureSource,
)
from coin_vision.ui import LoggingSink, OverlayWindowSink

logger = logging.getLogger("app.main")

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff"}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Real-time coin detection on a live video feed.")
    parser.add_argument("--config", type=Path, default=None, help="Path to a YAML/JSON configuration file.")
    parser.add_argument("--source", type=str, default=None, help="Camera index, video file or image file.")
    parser.add_argument("--fps", type=float, default=None, help="Target processing rate (<= 0 pauses detection).")
    gray = parser.add_mutually_exclusive_group()
    gray.add_argument("--grayscale", dest="grayscale", action="store_true", default=None)
    gray.add_argument("--color", dest="grayscale", action="store_false")
    parser.add_argument("--loop", action="store_true", default=None, help="Rewind video files at their end.")
    parser.add_argument("--no-window", action="store_true", help="Run headless and log detections.")
    return parser.parse_args(argv)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    processor = config.processor
    if args.fps is not None:
        processor = dataclasses.replace(processor, target_fps=args.fps)
    if args.grayscale is not None:
        processor = dataclasses.replace(processor, grayscale=args.grayscale)
    camera = config.camera
    if args.source is not None:
        camera = dataclasses.replace(camera, device_index=args.source)
    if args.loop:
        camera = dataclasses.replace(camera, loop=True)
    return dataclasses.replace(config, processor=processor, camera=camera)


def create_frame_source(config: Config) -> Tuple[FrameSource, str]:
    device = config.camera.device_index
    if isinstance(device, str):
        path = Path(device)
        if path.suffix.lower() in IMAGE_SUFFIXES and path.exists():
            return StaticImageSource(path, fps=config.camera.fps), f"image:{path}"
        try:
            device = int(device)
        except ValueError:
            pass
    width, height = config.camera.resolution
    source = VideoCaptureSource(
        device,
        width,
        height,
        fps=config.camera.fps,
        reopen_delay_s=config.camera.reconnect_delay_ms / 1000.0,
        realtime=config.camera.realtime,
        loop=config.camera.loop,
    )
    return source, source.label


def run(config: Config, no_window: bool) -> PipelineDiagnostics:
    install_exception_hook()

    frame_source, source_label = create_frame_source(config)
    detector = HoughCoinDetector(config.detector)
    dispatcher = QueuedDispatcher(maxsize=config.display.queue_size)

    display_enabled = not no_window
    window_sink: Optional[OverlayWindowSink] = None
    if display_enabled:
        try:
            cv2.namedWindow(config.display.window_name, cv2.WINDOW_AUTOSIZE)
            window_sink = OverlayWindowSink(
                config.display.window_name,
                config.display.surface_size,
                config.display.fill_mode,
            )
        except cv2.error as exc:
            logger.warning("OpenCV GUI unavailable (%s). Falling back to headless mode.", exc)
            display_enabled = False

    sink = window_sink or LoggingSink(config.display.surface_size, config.display.fill_mode)
    pipeline = ProcessingPipeline(detector, sink, config.processor, dispatcher=dispatcher)
    if window_sink is not None:
        frame_source.add_listener(window_sink.on_frame)
    pipeline.start(frame_source)
    frame_source.start()
    logger.info("Frame source started for %s", source_label)

    report_timer = time.monotonic()
    try:
        while frame_source.is_running() or dispatcher.pending:
            dispatcher.process_pending(timeout=0.02)
            if window_sink is not None:
                window_sink.show()
                key = cv2.waitKey(1) & 0xFF
                if key in (27, ord("q")):
                    logger.info("Exit requested by user input.")
                    break
                if key == ord("g"):
                    pipeline.grayscale = not pipeline.grayscale
                elif key == ord("m"):
                    window_sink.cycle_fill_mode()

            if time.monotonic() - report_timer >= 5.0:
                _log_diagnostics(pipeline.diagnostics)
                report_timer = time.monotonic()
    except KeyboardInterrupt:
        logger.info("Interrupted by user (Ctrl+C).")
    finally:
        pipeline.stop()
        frame_source.stop()
        dispatcher.process_pending()
        if display_enabled:
            cv2.destroyAllWindows()
        _log_diagnostics(pipeline.diagnostics)
        logger.info("Shutdown complete.")
    return pipeline.diagnostics


def _log_diagnostics(diagnostics: PipelineDiagnostics) -> None:
    snap = diagnostics.snapshot()
    logger.info(
        "Frames received=%d admitted=%d dropped=%d dispatched=%d discarded=%d failures=%s",
        snap.frames_received,
        snap.frames_admitted,
        snap.frames_dropped,
        snap.batches_dispatched,
        snap.batches_discarded,
        snap.failures or "{}",
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    try:
        config = load_config(args.config) if args.config else Config()
    except Exception as exc:
        print(f"Unable to read configuration: {exc}", file=sys.stderr)
        sys.exit(1)

    config = apply_overrides(config, args)
    configure_logging(config.logging)
    if args.config:
        logger.info("Configuration loaded from %s", args.config)
    run(config, no_window=args.no_window)


if __name__ == "__main__":
    main()
