import pathlib
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Set, Tuple

from .aggregate import CROPPED_FRAME
from .formatting import printf
from .models import CursorRenderPlan, FrameRecord, ScaleConfig, round_half_up
from .transform import extend_and_resize

SCALED_FRAME = "tmp%04d-%s.png"

Resize = Callable[..., Tuple[int, int]]


def scale_percent(value: float, scale: ScaleConfig) -> int:
    return scale.apply(value)


def frame_padding(plan: CursorRenderPlan, frame: FrameRecord) -> Tuple[int, int]:
    """Offset of the frame's top-left corner that lines its hotspot up with the union hotspot."""
    return (
        round_half_up(plan.max.hot_x - frame.dimensions.hot_x),
        round_half_up(plan.max.hot_y - frame.dimensions.hot_y),
    )


@dataclass(frozen=True)
class RenderedStep:
    size: int
    hot_x: int
    hot_y: int
    raster: str
    delay: Optional[int] = None

    def line(self) -> str:
        delay = self.delay if self.delay else ""
        return f"{self.size} {self.hot_x} {self.hot_y} {self.raster} {delay}".rstrip()


class MultiResolutionRenderer:
    def __init__(self, workdir: pathlib.Path, resize: Resize = extend_and_resize) -> None:
        self.workdir = pathlib.Path(workdir)
        self.resize = resize

    def render_scale(self, plan: CursorRenderPlan, scale: ScaleConfig, position: int) -> List[RenderedStep]:
        hot_x = scale_percent(plan.max.hot_x, scale)
        hot_y = scale_percent(plan.max.hot_y, scale)
        size = scale_percent(plan.size, scale)
        canvas = plan.canvas

        steps: List[RenderedStep] = []
        rendered: Set[int] = set()
        for frame in plan.frames:
            raster = printf(SCALED_FRAME, frame.index, position)
            if frame.index not in rendered:
                self.resize(
                    str(self.workdir / printf(CROPPED_FRAME, frame.index)),
                    str(self.workdir / raster),
                    offset=frame_padding(plan, frame),
                    canvas=canvas,
                    percent=scale.percent,
                )
                rendered.add(frame.index)
            steps.append(RenderedStep(size, hot_x, hot_y, raster, frame.delay))
        return steps

    def render(self, plan: CursorRenderPlan, scales: Sequence[ScaleConfig]) -> List[RenderedStep]:
        steps: List[RenderedStep] = []
        for position, scale in enumerate(scales):
            steps.extend(self.render_scale(plan, scale, position))
        return steps
