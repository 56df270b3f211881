import pytest
from PIL import Image

from hand_of_evil.errors import TransformError
from hand_of_evil.transform import (
    apply_operation,
    extend_and_resize,
    parse_operation,
    parse_rgba_color,
    transform_frame,
)


def test_trim_reports_offsets_and_cropped_size(workdir, frame_factory):
    frame_factory(workdir / "a.png", size=(30, 30), box=(2, 3, 22, 13))
    result = transform_frame(str(workdir / "a.png"), str(workdir / "tmp0001.png"))
    assert (result.orig_width, result.orig_height) == (30, 30)
    assert (result.crop_x, result.crop_y) == (2, 3)
    assert (result.width, result.height) == (20, 10)
    assert (result.canvas_width, result.canvas_height) == (30, 30)
    with Image.open(workdir / "tmp0001.png") as cropped:
        assert cropped.size == (20, 10)


def test_mirror_moves_content_to_the_other_side(workdir, frame_factory):
    frame_factory(workdir / "a.png", size=(30, 20), box=(0, 0, 5, 5))
    result = transform_frame(str(workdir / "a.png"), str(workdir / "out.png"), mirror=True)
    assert (result.crop_x, result.crop_y) == (25, 0)


def test_rotation_expands_the_canvas(workdir, frame_factory):
    frame_factory(workdir / "a.png", size=(30, 20), box=(0, 0, 30, 20))
    result = transform_frame(str(workdir / "a.png"), str(workdir / "out.png"), rotate=45)
    assert result.canvas_width > 30
    assert result.canvas_height > 20
    assert (result.orig_width, result.orig_height) == (30, 20)


def test_operations_are_applied_in_order(workdir, frame_factory):
    frame_factory(workdir / "a.png", size=(4, 4), box=(0, 0, 4, 4), color=(255, 0, 0, 255))
    transform_frame(
        str(workdir / "a.png"),
        str(workdir / "out.png"),
        operations=("colorize:#0000ff:100", "opacity:50"),
    )
    with Image.open(workdir / "out.png") as out:
        r, g, b, a = out.convert("RGBA").getpixel((1, 1))
    assert (r, g, b) == (0, 0, 255)
    assert a in (127, 128)


def test_unknown_operation_reports_the_command(workdir, frame_factory):
    frame_factory(workdir / "a.png")
    with pytest.raises(TransformError) as excinfo:
        transform_frame(str(workdir / "a.png"), str(workdir / "out.png"), operations=("sparkle",))
    assert "Unknown operation: sparkle" in str(excinfo.value)
    assert excinfo.value.command.startswith('transform "')
    assert "sparkle" in excinfo.value.command


def test_missing_source_is_a_transform_error(workdir):
    with pytest.raises(TransformError, match="Unable to read"):
        transform_frame(str(workdir / "missing.png"), str(workdir / "out.png"))


def test_fully_transparent_frame_is_rejected(workdir, frame_factory):
    frame_factory(workdir / "empty.png", box=(0, 0, 10, 10), color=(0, 0, 0, 0))
    with pytest.raises(TransformError, match="no visible pixels"):
        transform_frame(str(workdir / "empty.png"), str(workdir / "out.png"))


def test_extend_pads_top_left_and_resizes(workdir, frame_factory):
    frame_factory(workdir / "tmp0001.png", size=(20, 20), box=(0, 0, 20, 20))
    size = extend_and_resize(
        str(workdir / "tmp0001.png"),
        str(workdir / "tmp0001-0.png"),
        offset=(2, 2),
        canvas=(24, 24),
        percent=100,
    )
    assert size == (24, 24)
    with Image.open(workdir / "tmp0001-0.png") as padded:
        assert padded.getpixel((1, 1))[3] == 0
        assert padded.getpixel((2, 2))[3] == 255
        assert padded.getpixel((23, 23))[3] == 0

    size = extend_and_resize(
        str(workdir / "tmp0001.png"),
        str(workdir / "tmp0001-1.png"),
        offset=(2, 2),
        canvas=(24, 24),
        percent=50,
    )
    assert size == (12, 12)


def test_invalid_operation_argument():
    image = Image.new("RGBA", (2, 2))
    with pytest.raises(TransformError, match="Invalid operation"):
        apply_operation(image, "brightness:bright")


def test_parse_operation_splits_arguments():
    _, args = parse_operation("colorize:#ff0000:25")
    assert args == ("#ff0000", "25")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("#ff8000", (255, 128, 0, 255)),
        ("00ff0080", (0, 255, 0, 128)),
        ([1, 2, 3], (1, 2, 3, 255)),
    ],
)
def test_parse_rgba_color(value, expected):
    assert parse_rgba_color(value) == expected
