import hashlib
import zipfile

import pytest
from PIL import Image

from hand_of_evil.models import CursorSpec


def make_frame(path, size=(30, 30), box=(0, 0, 10, 10), color=(200, 30, 30, 255)):
    image = Image.new("RGBA", size, (0, 0, 0, 0))
    image.paste(color, box)
    image.save(path)
    return path


def make_archive(path, frames):
    with zipfile.ZipFile(path, "w") as archive:
        for name, (size, box) in frames.items():
            source = path.parent / name
            make_frame(source, size, box)
            archive.write(source, name)
            source.unlink()
    return hashlib.md5(path.read_bytes()).hexdigest()


@pytest.fixture
def workdir(tmp_path):
    directory = tmp_path / "work"
    directory.mkdir()
    return directory


@pytest.fixture
def example_frames(workdir):
    """Two frames sharing source hotspot (10, 10): A crops to 20x20, B to 24x24."""
    make_frame(workdir / "hand1.png", box=(2, 2, 22, 22))
    make_frame(workdir / "hand2.png", box=(0, 0, 24, 24))
    return workdir


@pytest.fixture
def example_spec():
    return CursorSpec(
        name="left_ptr",
        hotspot=(10, 10),
        prefix="hand",
        frames=("1", "2"),
        file_name="%s%s.png",
        file_mask="%s%s\\.png$",
    )


@pytest.fixture
def archive_frames():
    return {
        "hand1.png": ((30, 30), (2, 2, 22, 22)),
        "hand2.png": ((30, 30), (0, 0, 24, 24)),
        "wait1.png": ((16, 16), (0, 0, 16, 16)),
    }


@pytest.fixture
def frame_factory():
    return make_frame


@pytest.fixture
def archive_factory():
    return make_archive
