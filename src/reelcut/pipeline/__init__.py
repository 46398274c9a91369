"""Video processing pipeline.

Segment planning, cut materialization, rendition and the per-channel
orchestrator that ties them together.
"""

from reelcut.pipeline.materializer import CutFailure, CutMaterializer, MaterializedCut
from reelcut.pipeline.processor import (
    ChannelProcessor,
    VideoResult,
    VideoStatus,
    build_channel_processor,
)
from reelcut.pipeline.rendition import RenditionPipeline
from reelcut.pipeline.segments import SEGMENT_BOUND_SECONDS, SegmentPlanner, plan_segment_starts

__all__ = [
    "CutFailure",
    "CutMaterializer",
    "MaterializedCut",
    "ChannelProcessor",
    "VideoResult",
    "VideoStatus",
    "build_channel_processor",
    "RenditionPipeline",
    "SEGMENT_BOUND_SECONDS",
    "SegmentPlanner",
    "plan_segment_starts",
]
