"""Per-frame orchestration: admit, convert, detect, map, dispatch."""

from __future__ import annotations

import dataclasses
import logging
import weakref
from enum import Enum
from typing import Optional, Protocol, Tuple, Union

from coin_vision.config.models import ProcessorConfig
from coin_vision.core.detector import DetectorBase
from coin_vision.core.entities import DetectionBatch, FillMode, Frame, PresentationContext, Size
from coin_vision.core.processing import CoordinateMapper, FrameConverter, FrameRateLimiter
from coin_vision.infra.errors import CoinVisionError

from .diagnostics import PipelineDiagnostics
from .dispatcher import ImmediateDispatcher, QueuedDispatcher
from .frame_source import FrameSource

logger = logging.getLogger("pipeline")


class ResultSink(Protocol):
    """Consumer of detection batches; also describes the presentation surface."""

    def presentation_surface_size(self) -> Tuple[float, float]: ...

    def fill_mode(self) -> Union[FillMode, str]: ...

    def on_detections(self, batch: DetectionBatch) -> None: ...


class PipelineState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


class FrameOutcome(Enum):
    """What happened to a frame handed to :meth:`ProcessingPipeline.on_frame`."""

    IGNORED = "ignored"
    DROPPED = "dropped"
    FAILED = "failed"
    DISPATCHED = "dispatched"
    DISCARDED = "discarded"
    SINK_GONE = "sink_gone"


class ProcessingPipeline:
    """Runs admitted frames through conversion, detection and mapping.

    Frames are processed synchronously on the thread that delivers them; only
    the final hand-off to the sink goes through the dispatcher. The sink is
    held through a weak reference, so a sink that has been garbage collected
    turns dispatch into a silent no-op.

    ``UnsupportedFormat``, ``DetectionFailure`` and ``InvalidSurfaceSize``
    abort the current frame only. They are logged, counted in
    :attr:`diagnostics` and never reach the frame source.
    """

    def __init__(
        self,
        detector: DetectorBase,
        sink: ResultSink,
        config: ProcessorConfig | None = None,
        *,
        converter: FrameConverter | None = None,
        mapper: CoordinateMapper | None = None,
        dispatcher: ImmediateDispatcher | QueuedDispatcher | None = None,
        diagnostics: PipelineDiagnostics | None = None,
    ) -> None:
        self._detector = detector
        self._sink_ref = weakref.ref(sink)
        self._config = config or ProcessorConfig()
        self._converter = converter or FrameConverter()
        self._mapper = mapper or CoordinateMapper()
        self._dispatcher = dispatcher or ImmediateDispatcher()
        self.diagnostics = diagnostics or PipelineDiagnostics()

        self._limiter = FrameRateLimiter(self._config.target_fps)
        self._state = PipelineState.IDLE
        self._source: Optional[FrameSource] = None

    # ------------------------------------------------------------------ config
    @property
    def config(self) -> ProcessorConfig:
        return self._config

    @config.setter
    def config(self, value: ProcessorConfig) -> None:
        # Single reference swap; the producer thread snapshots it per frame.
        self._config = value
        logger.info("Processor config updated: target_fps=%.2f grayscale=%s", value.target_fps, value.grayscale)

    @property
    def target_fps(self) -> float:
        return self._config.target_fps

    @target_fps.setter
    def target_fps(self, value: float) -> None:
        self.config = dataclasses.replace(self._config, target_fps=float(value))

    @property
    def grayscale(self) -> bool:
        return self._config.grayscale

    @grayscale.setter
    def grayscale(self, value: bool) -> None:
        self.config = dataclasses.replace(self._config, grayscale=bool(value))

    # --------------------------------------------------------------- lifecycle
    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is PipelineState.ACTIVE

    def start(self, source: Optional[FrameSource] = None) -> None:
        if self.is_active:
            logger.debug("Pipeline already active")
            return
        self._detector.warmup()
        self._limiter.reset()
        self._state = PipelineState.ACTIVE
        if source is not None:
            source.add_listener(self.on_frame)
            self._source = source
        logger.info("Pipeline active (target %.2f fps, grayscale=%s)", self._config.target_fps, self._config.grayscale)

    def stop(self) -> None:
        if not self.is_active:
            return
        self._state = PipelineState.IDLE
        if self._source is not None:
            self._source.remove_listener(self.on_frame)
            self._source = None
        logger.info("Pipeline idle")

    # ------------------------------------------------------------- processing
    def on_frame(self, frame: Frame) -> FrameOutcome:
        self.diagnostics.increment("frames_received")
        if not self.is_active:
            self.diagnostics.increment("frames_ignored")
            return FrameOutcome.IGNORED

        config = self._config
        if config.target_fps != self._limiter.target_fps:
            self._limiter.reconfigure(config.target_fps)

        if not self._limiter.admit(frame.timestamp):
            self.diagnostics.increment("frames_dropped")
            return FrameOutcome.DROPPED
        self.diagnostics.increment("frames_admitted")

        sink = self._sink_ref()
        if sink is None:
            logger.debug("Result sink released; skipping frame %s", frame.frame_id)
            return FrameOutcome.SINK_GONE

        try:
            batch = self._process(frame, config, sink)
        except CoinVisionError as exc:
            self.diagnostics.record_failure(exc.kind)
            logger.warning("Frame %s skipped (%s): %s", frame.frame_id, exc.kind, exc)
            return FrameOutcome.FAILED

        if not self._dispatcher.dispatch(batch, self._deliver):
            self.diagnostics.increment("batches_discarded")
            return FrameOutcome.DISCARDED
        return FrameOutcome.DISPATCHED

    def _process(self, frame: Frame, config: ProcessorConfig, sink: ResultSink) -> DetectionBatch:
        converted = self._converter.convert(frame, config.grayscale)
        regions = self._detector.detect(converted)

        # Queried once per frame so every region in the batch shares one context.
        context = PresentationContext.create(sink.presentation_surface_size(), sink.fill_mode())
        frame_size = Size(frame.width, frame.height)
        mapped = self._mapper.map_batch(regions, frame_size, context)
        return DetectionBatch(
            regions=tuple(mapped),
            frame_id=frame.frame_id,
            timestamp=frame.timestamp,
            frame_size=frame_size,
            context=context,
        )

    def _deliver(self, batch: DetectionBatch) -> None:
        sink = self._sink_ref()
        if sink is None:
            logger.debug("Result sink released before delivery of frame %s", batch.frame_id)
            return
        sink.on_detections(batch)
        self.diagnostics.increment("batches_dispatched")
