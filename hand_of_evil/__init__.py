from .aggregate import FrameAggregator, parse_frame_token
from .errors import (
    ArchiveChecksumError,
    CompilerError,
    ConfigError,
    CursorBuildError,
    FormatError,
    HotspotError,
    ToolError,
    TransformError,
)
from .models import CursorRenderPlan, CursorSpec, Dimensions, FrameRecord, ScaleConfig
from .render import MultiResolutionRenderer, RenderedStep

__all__ = (
    "ArchiveChecksumError",
    "CompilerError",
    "ConfigError",
    "CursorBuildError",
    "CursorRenderPlan",
    "CursorSpec",
    "Dimensions",
    "FormatError",
    "FrameAggregator",
    "FrameRecord",
    "HotspotError",
    "MultiResolutionRenderer",
    "RenderedStep",
    "ScaleConfig",
    "ToolError",
    "TransformError",
    "parse_frame_token",
)
