"""Service layer: frame sources, pipeline orchestration and result delivery."""

from .diagnostics import DiagnosticsSnapshot, PipelineDiagnostics
from .dispatcher import ImmediateDispatcher, QueuedDispatcher
from .frame_source import FrameSource, StaticImageSource, VideoCaptureSource
from .pipeline import FrameOutcome, PipelineState, ProcessingPipeline, ResultSink

__all__ = [
    "DiagnosticsSnapshot",
    "FrameOutcome",
    "FrameSource",
    "ImmediateDispatcher",
    "PipelineDiagnostics",
    "PipelineState",
    "ProcessingPipeline",
    "QueuedDispatcher",
    "ResultSink",
    "StaticImageSource",
    "VideoCaptureSource",
]
