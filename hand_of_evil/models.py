import math
import re
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .errors import ConfigError

RE_SCALE = re.compile(r"^([0-9]+(?:\.[0-9]+)?)%$")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Dimensions:
    width: float = 0
    height: float = 0
    hot_x: float = 0
    hot_y: float = 0

    def union(self, other: "Dimensions") -> "Dimensions":
        return Dimensions(
            width=max(self.width, other.width),
            height=max(self.height, other.height),
            hot_x=max(self.hot_x, other.hot_x),
            hot_y=max(self.hot_y, other.hot_y),
        )


@dataclass(frozen=True)
class FrameRecord:
    index: int
    dimensions: Dimensions
    source: str
    delay: Optional[int] = None

    def with_delay(self, delay: Optional[int]) -> "FrameRecord":
        return replace(self, delay=delay)


@dataclass(frozen=True)
class CursorSpec:
    name: str
    hotspot: Tuple[float, float]
    prefix: str
    frames: Tuple[str, ...]
    aliases: Tuple[str, ...] = ()
    mirror: bool = False
    rotate: float = 0
    extra: Tuple[str, ...] = ()
    effects: Tuple[str, ...] = ()
    file_name: str = "%s%s"
    file_mask: str = "%s%s"

    @property
    def operations(self) -> Tuple[str, ...]:
        return self.extra + self.effects


@dataclass(frozen=True)
class CursorRenderPlan:
    spec: CursorSpec
    max: Dimensions
    frames: Tuple[FrameRecord, ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def size(self) -> float:
        return max(self.max.width, self.max.height)

    @property
    def unique_frames(self) -> Tuple[FrameRecord, ...]:
        seen = {}
        for frame in self.frames:
            seen.setdefault(frame.index, frame)
        return tuple(seen.values())

    @property
    def canvas(self) -> Tuple[int, int]:
        # Hotspot-aligned union of every frame: padding plus cropped size.
        width = 0
        height = 0
        for frame in self.unique_frames:
            dims = frame.dimensions
            width = max(width, round_half_up(self.max.hot_x - dims.hot_x) + dims.width)
            height = max(height, round_half_up(self.max.hot_y - dims.hot_y) + dims.height)
        return int(width), int(height)


@dataclass(frozen=True)
class ScaleConfig:
    label: str
    percent: float

    @classmethod
    def parse(cls, value: str) -> "ScaleConfig":
        match = RE_SCALE.match(str(value).strip())
        if not match:
            raise ConfigError(f"Invalid scale {value!r}, expected a percentage such as 50%")
        percent = float(match.group(1))
        if percent <= 0:
            raise ConfigError(f"Scale must be greater than zero: {value!r}")
        return cls(str(value).strip(), percent)

    def apply(self, value: float) -> int:
        return round_half_up(value * self.percent / 100)
