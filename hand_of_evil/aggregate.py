import os
import pathlib
import re
from typing import Callable, Dict, List, Optional, Tuple

from .errors import ConfigError
from .formatting import printf
from .hotspot import check_hotspot, transform_hotspot
from .models import CursorRenderPlan, CursorSpec, Dimensions, FrameRecord
from .transform import TransformResult, transform_frame

RE_FRAME = re.compile(r"^(\*|[0-9]+)(?::([0-9]+))?$")
WILDCARD = "*"
CROPPED_FRAME = "tmp%04d.png"

Transform = Callable[..., TransformResult]


def parse_frame_token(token: str) -> Tuple[str, Optional[int]]:
    match = RE_FRAME.match(token)
    if not match:
        raise ConfigError(f"Invalid frame format: {token!r}")
    suffix, delay = match.groups()
    return suffix, int(delay) if delay else None


class FrameAggregator:
    """Turns a cursor's frame tokens into timed steps over cropped rasters.

    Cropped rasters are written to ``workdir`` as ``tmp%04d.png`` and are
    reused by every scale the renderer produces afterwards.
    """

    def __init__(self, workdir: pathlib.Path, transform: Transform = transform_frame) -> None:
        self.workdir = pathlib.Path(workdir)
        self.transform = transform

    def resolve_sources(self, spec: CursorSpec, suffix: str) -> List[str]:
        if suffix != WILDCARD:
            return [printf(spec.file_name, spec.prefix, suffix)]
        mask = re.compile(printf(spec.file_mask, spec.prefix, ".*"))
        return [
            name for name in sorted(os.listdir(self.workdir))
            if mask.search(name) and (self.workdir / name).is_file()
        ]

    def process_frame(self, spec: CursorSpec, index: int, source: str) -> Dimensions:
        result = self.transform(
            str(self.workdir / source),
            str(self.workdir / printf(CROPPED_FRAME, index)),
            mirror=spec.mirror,
            rotate=spec.rotate,
            operations=spec.operations,
        )
        hot_x, hot_y = transform_hotspot(spec.hotspot, result, spec.mirror, spec.rotate)
        check_hotspot((hot_x, hot_y), result.width, result.height)
        return Dimensions(result.width, result.height, hot_x, hot_y)

    def aggregate(self, spec: CursorSpec) -> CursorRenderPlan:
        processed: Dict[str, FrameRecord] = {}
        frames: List[FrameRecord] = []
        maximum = Dimensions()
        delay: Optional[int] = None
        index = 1

        for token in spec.frames:
            suffix, token_delay = parse_frame_token(token)
            if token_delay is not None:
                delay = token_delay
            for source in self.resolve_sources(spec, suffix):
                if source in processed:
                    if suffix != WILDCARD:
                        frames.append(processed[source].with_delay(delay))
                    continue

                dimensions = self.process_frame(spec, index, source)
                maximum = maximum.union(dimensions)
                frame = FrameRecord(index, dimensions, source, delay)
                frames.append(frame)
                processed[source] = frame
                index += 1

        if not frames:
            raise ConfigError(f"No frames found for cursor {spec.name}")
        return CursorRenderPlan(spec, maximum, tuple(frames))
