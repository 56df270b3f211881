"""Raster operations used by the cursor pipeline, performed in-process with Pillow.

Each call takes a source file and an ordered list of operations and writes the
result to a destination file, reporting the geometry needed by the hotspot and
canvas calculations.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from .errors import TransformError
from .models import round_half_up

RESAMPLE_ROTATE = Image.Resampling.BICUBIC
RESAMPLE_RESIZE = Image.Resampling.LANCZOS
TRANSPARENT = (0, 0, 0, 0)


@dataclass(frozen=True)
class TransformResult:
    orig_width: int
    orig_height: int
    crop_x: int
    crop_y: int
    width: int
    height: int
    canvas_width: int
    canvas_height: int


def parse_rgba_color(value: Optional[Any]) -> Tuple[int, int, int, int]:
    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed.startswith("#"):
            trimmed = trimmed[1:]
        if len(trimmed) == 6:
            r = int(trimmed[0:2], 16)
            g = int(trimmed[2:4], 16)
            b = int(trimmed[4:6], 16)
            return (r, g, b, 255)
        if len(trimmed) == 8:
            r = int(trimmed[0:2], 16)
            g = int(trimmed[2:4], 16)
            b = int(trimmed[4:6], 16)
            a = int(trimmed[6:8], 16)
            return (r, g, b, a)
    if isinstance(value, Sequence) and not isinstance(value, str):
        if len(value) == 3:
            r, g, b = value
            return (int(r), int(g), int(b), 255)
        if len(value) == 4:
            r, g, b, a = value
            return (int(r), int(g), int(b), int(a))
    raise ValueError(f"Unsupported color value: {value}")


def _split_alpha(image: Image.Image) -> Tuple[Image.Image, Image.Image]:
    return image.convert("RGB"), image.getchannel("A")


def _with_alpha(rgb: Image.Image, alpha: Image.Image) -> Image.Image:
    result = rgb.convert("RGBA")
    result.putalpha(alpha)
    return result


def colorize(image: Image.Image, color: str, percent: str = "50") -> Image.Image:
    tr, tg, tb, _ = parse_rgba_color(color)
    amount = float(percent) / 100.0
    arr = np.asarray(image).astype(np.float32)
    target = np.array([tr, tg, tb], dtype=np.float32)
    arr[..., :3] = arr[..., :3] * (1.0 - amount) + target * amount
    return Image.fromarray(np.clip(arr, 0, 255).astype(np.uint8), "RGBA")


def opacity(image: Image.Image, percent: str) -> Image.Image:
    arr = np.asarray(image).copy()
    alpha = arr[..., 3].astype(np.float32) * (float(percent) / 100.0)
    arr[..., 3] = np.clip(alpha, 0, 255).astype(np.uint8)
    return Image.fromarray(arr, "RGBA")


def _enhance(enhancer: Callable[[Image.Image], Any]) -> Callable[..., Image.Image]:
    def apply(image: Image.Image, factor: str) -> Image.Image:
        rgb, alpha = _split_alpha(image)
        return _with_alpha(enhancer(rgb).enhance(float(factor)), alpha)
    return apply


def grayscale(image: Image.Image) -> Image.Image:
    rgb, alpha = _split_alpha(image)
    return _with_alpha(rgb.convert("L"), alpha)


def blur(image: Image.Image, radius: str = "1") -> Image.Image:
    return image.filter(ImageFilter.GaussianBlur(float(radius)))


def flip(image: Image.Image) -> Image.Image:
    return ImageOps.flip(image)


OPERATIONS: Dict[str, Callable[..., Image.Image]] = {
    "colorize": colorize,
    "opacity": opacity,
    "brightness": _enhance(ImageEnhance.Brightness),
    "contrast": _enhance(ImageEnhance.Contrast),
    "saturation": _enhance(ImageEnhance.Color),
    "grayscale": grayscale,
    "blur": blur,
    "flip": flip,
}


def parse_operation(token: str) -> Tuple[Callable[..., Image.Image], Tuple[str, ...]]:
    # Colors never contain ':'.
    name, *args = token.split(":")
    operation = OPERATIONS.get(name)
    if operation is None:
        raise TransformError(f"Unknown operation: {name}")
    return operation, tuple(args)


def apply_operation(image: Image.Image, token: str) -> Image.Image:
    operation, args = parse_operation(token)
    try:
        return operation(image, *args)
    except (TypeError, ValueError) as exc:
        raise TransformError(f"Invalid operation {token!r}: {exc}") from exc


def rotate_image(image: Image.Image, degrees: float) -> Image.Image:
    # Positive angles turn clockwise; Pillow's own convention is the opposite.
    return image.rotate(-degrees, resample=RESAMPLE_ROTATE, expand=True, fillcolor=TRANSPARENT)


def resize_image(image: Image.Image, percent: float) -> Image.Image:
    scale = percent / 100.0
    if scale <= 0:
        raise TransformError("resize percentage must be greater than zero.")
    new_width = max(1, round_half_up(image.width * scale))
    new_height = max(1, round_half_up(image.height * scale))
    if new_width == image.width and new_height == image.height:
        return image
    return image.resize((new_width, new_height), RESAMPLE_RESIZE)


def describe_command(source: str, destination: str, mirror: bool = False, rotate: float = 0,
                     operations: Iterable[str] = ()) -> str:
    parts = [f'transform "{source}"']
    if mirror:
        parts.append("mirror")
    if rotate:
        parts.append(f"rotate:{rotate:g}")
    parts.extend(operations)
    parts.append("trim")
    parts.append(f'-> "{destination}"')
    return " ".join(parts)


def _open_rgba(path: str, command: str) -> Image.Image:
    try:
        with Image.open(path) as source_image:
            return source_image.convert("RGBA")
    except OSError as exc:
        raise TransformError(f"Unable to read {path}: {exc}", command) from exc


def _save_png(image: Image.Image, path: str, command: str) -> None:
    try:
        image.save(path, format="PNG")
    except OSError as exc:
        raise TransformError(f"Unable to write {path}: {exc}", command) from exc


def transform_frame(
    source: str,
    destination: str,
    mirror: bool = False,
    rotate: float = 0,
    operations: Sequence[str] = (),
) -> TransformResult:
    command = describe_command(source, destination, mirror, rotate, operations)
    image = _open_rgba(source, command)
    orig_width, orig_height = image.size

    if mirror:
        image = ImageOps.mirror(image)
    if rotate:
        image = rotate_image(image, rotate)
    for token in operations:
        try:
            image = apply_operation(image, token)
        except TransformError as exc:
            raise TransformError(str(exc), command) from exc

    canvas_width, canvas_height = image.size
    bbox = image.getchannel("A").getbbox()
    if not bbox:
        raise TransformError(f"{source} has no visible pixels", command)
    left, top, right, bottom = bbox

    _save_png(image.crop(bbox), destination, command)
    return TransformResult(
        orig_width=orig_width,
        orig_height=orig_height,
        crop_x=left,
        crop_y=top,
        width=right - left,
        height=bottom - top,
        canvas_width=canvas_width,
        canvas_height=canvas_height,
    )


def extend_and_resize(
    source: str,
    destination: str,
    offset: Tuple[int, int],
    canvas: Tuple[int, int],
    percent: float,
) -> Tuple[int, int]:
    """Place ``source`` at ``offset`` on a transparent ``canvas`` and scale it by ``percent``."""
    command = (
        f'extend "{source}" {canvas[0]}x{canvas[1]}-{offset[0]}-{offset[1]} '
        f'resize:{percent:g}% -> "{destination}"'
    )
    frame = _open_rgba(source, command)
    padded = Image.new("RGBA", canvas, TRANSPARENT)
    padded.paste(frame, offset)
    resized = resize_image(padded, percent)
    _save_png(resized, destination, command)
    return resized.size
