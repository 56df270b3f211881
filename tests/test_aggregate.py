from dataclasses import replace

import pytest

from hand_of_evil.aggregate import FrameAggregator, parse_frame_token
from hand_of_evil.errors import ConfigError, HotspotError, TransformError
from hand_of_evil.models import Dimensions
from hand_of_evil.transform import transform_frame


class CountingTransform:
    def __init__(self):
        self.sources = []

    def __call__(self, source, destination, **kwargs):
        self.sources.append(source)
        return transform_frame(source, destination, **kwargs)


@pytest.mark.parametrize(
    "token, expected",
    [("3", ("3", None)), ("3:50", ("3", 50)), ("*", ("*", None)), ("*:120", ("*", 120))],
)
def test_parse_frame_token(token, expected):
    assert parse_frame_token(token) == expected


@pytest.mark.parametrize("token", ["", "a", "3:", ":50", "3:50:1", "**"])
def test_invalid_frame_token(token):
    with pytest.raises(ConfigError, match="Invalid frame format"):
        parse_frame_token(token)


def test_union_box_over_example_frames(example_frames, example_spec):
    plan = FrameAggregator(example_frames).aggregate(example_spec)
    assert plan.max == Dimensions(24, 24, 10, 10)
    assert plan.size == 24
    assert [frame.index for frame in plan.frames] == [1, 2]
    assert plan.frames[0].dimensions == Dimensions(20, 20, 8, 8)
    assert plan.frames[1].dimensions == Dimensions(24, 24, 10, 10)
    assert (example_frames / "tmp0001.png").exists()
    assert (example_frames / "tmp0002.png").exists()


def test_max_dominates_every_frame(workdir, frame_factory, example_spec):
    frame_factory(workdir / "hand1.png", size=(40, 40), box=(5, 9, 35, 20))
    frame_factory(workdir / "hand2.png", size=(40, 40), box=(9, 2, 14, 39))
    frame_factory(workdir / "hand3.png", size=(40, 40), box=(0, 0, 12, 12))
    spec = replace(example_spec, frames=("1", "2", "3"))
    plan = FrameAggregator(workdir).aggregate(spec)
    for frame in plan.frames:
        dims = frame.dimensions
        assert plan.max.width >= dims.width
        assert plan.max.height >= dims.height
        assert plan.max.hot_x >= dims.hot_x
        assert plan.max.hot_y >= dims.hot_y


def test_repeated_frame_reuses_raster_with_new_delay(example_frames, example_spec):
    transform = CountingTransform()
    spec = replace(example_spec, frames=("1:50", "2", "1:80"))
    plan = FrameAggregator(example_frames, transform=transform).aggregate(spec)

    assert len(transform.sources) == 2
    assert [frame.index for frame in plan.frames] == [1, 2, 1]
    assert [frame.delay for frame in plan.frames] == [50, 50, 80]
    assert plan.frames[2].dimensions == plan.frames[0].dimensions
    assert plan.frames[2].source == plan.frames[0].source
    assert len(plan.unique_frames) == 2


def test_delay_stays_in_effect_until_overridden(example_frames, example_spec):
    spec = replace(example_spec, frames=("1", "2:30", "1"))
    plan = FrameAggregator(example_frames).aggregate(spec)
    assert [frame.delay for frame in plan.frames] == [None, 30, 30]


def test_wildcard_expands_in_listing_order(workdir, frame_factory, example_spec):
    for name in ("hand3.png", "hand1.png", "hand2.png", "wait1.png"):
        frame_factory(workdir / name)
    transform = CountingTransform()
    spec = replace(example_spec, hotspot=(0, 0), frames=("*:40",))
    plan = FrameAggregator(workdir, transform=transform).aggregate(spec)

    assert [frame.source for frame in plan.frames] == ["hand1.png", "hand2.png", "hand3.png"]
    assert [frame.index for frame in plan.frames] == [1, 2, 3]
    assert all(frame.delay == 40 for frame in plan.frames)
    assert len(transform.sources) == 3


def test_wildcard_skips_frames_already_processed(workdir, frame_factory, example_spec):
    for name in ("hand1.png", "hand2.png", "hand3.png"):
        frame_factory(workdir / name)
    spec = replace(example_spec, hotspot=(0, 0), frames=("2", "*"))
    plan = FrameAggregator(workdir).aggregate(spec)
    assert [frame.source for frame in plan.frames] == ["hand2.png", "hand1.png", "hand3.png"]
    assert [frame.index for frame in plan.frames] == [1, 2, 3]


def test_wildcard_without_matches_is_an_error(workdir, example_spec):
    spec = replace(example_spec, frames=("*",))
    with pytest.raises(ConfigError, match="No frames found"):
        FrameAggregator(workdir).aggregate(spec)


def test_missing_frame_file_aborts_the_cursor(example_frames, example_spec):
    spec = replace(example_spec, frames=("1", "9"))
    with pytest.raises(TransformError, match="hand9.png"):
        FrameAggregator(example_frames).aggregate(spec)


def test_hotspot_outside_cropped_frame(example_frames, example_spec):
    spec = replace(example_spec, hotspot=(0, 0), frames=("1",))
    with pytest.raises(HotspotError):
        FrameAggregator(example_frames).aggregate(spec)


def test_mirrored_cursor_moves_hotspot(workdir, frame_factory, example_spec):
    frame_factory(workdir / "hand1.png", size=(30, 30), box=(0, 0, 10, 10))
    spec = replace(example_spec, hotspot=(2, 5), frames=("1",), mirror=True)
    plan = FrameAggregator(workdir).aggregate(spec)
    # Content moves to x 20..30 and the hotspot to 30 - 2 = 28, i.e. 8 after the crop.
    assert plan.frames[0].dimensions == Dimensions(10, 10, 8, 5)
