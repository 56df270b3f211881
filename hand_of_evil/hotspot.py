import math
from typing import Tuple

from .errors import HotspotError
from .transform import TransformResult


def mirror_hotspot(hotspot: Tuple[float, float], width: float) -> Tuple[float, float]:
    hot_x, hot_y = hotspot
    return width - hot_x, hot_y


def rotate_hotspot(
    hotspot: Tuple[float, float],
    size: Tuple[float, float],
    canvas: Tuple[float, float],
    degrees: float,
) -> Tuple[float, float]:
    """Rotate ``hotspot`` clockwise about the centre of an image of ``size``.

    The rotated image is centred in ``canvas``, which is larger than ``size``
    whenever the angle is not a multiple of 180 degrees.
    """
    width, height = size
    canvas_width, canvas_height = canvas
    dx = hotspot[0] - (width - 1) / 2
    dy = hotspot[1] - (height - 1) / 2
    angle = math.radians(degrees)
    c = math.cos(angle)
    s = math.sin(angle)
    return (
        (canvas_width - 1) / 2 + dx * c - dy * s,
        (canvas_height - 1) / 2 + dy * c + dx * s,
    )


def transform_hotspot(
    hotspot: Tuple[float, float],
    result: TransformResult,
    mirror: bool = False,
    rotate: float = 0,
) -> Tuple[float, float]:
    if mirror:
        hotspot = mirror_hotspot(hotspot, result.orig_width)
    if rotate:
        hotspot = rotate_hotspot(
            hotspot,
            (result.orig_width, result.orig_height),
            (result.canvas_width, result.canvas_height),
            rotate,
        )
    return hotspot[0] - result.crop_x, hotspot[1] - result.crop_y


def check_hotspot(hotspot: Tuple[float, float], width: float, height: float) -> None:
    hot_x, hot_y = hotspot
    if not (0 <= hot_x <= width and 0 <= hot_y <= height):
        raise HotspotError(
            f"Hotspot ({hot_x:g}, {hot_y:g}) lies outside the {width}x{height} cropped frame"
        )
