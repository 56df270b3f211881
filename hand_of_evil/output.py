import os
import pathlib
import subprocess
from typing import Dict, Iterable, List, Optional, Sequence

from PIL import Image

from .aggregate import CROPPED_FRAME
from .errors import CompilerError, ConfigError
from .formatting import printf
from .models import CursorRenderPlan
from .render import RenderedStep, frame_padding

XCURSORGEN = "xcursorgen"
PREVIEW_INDEX_HEADER = "name|preview\n---|---\n"


def compile_xcursor(
    name: str,
    steps: Sequence[RenderedStep],
    workdir: pathlib.Path,
    compiler: str = XCURSORGEN,
) -> pathlib.Path:
    command = [compiler, "-", name]
    config = "\n".join(step.line() for step in steps) + "\n"
    try:
        subprocess.run(
            command,
            input=config,
            cwd=workdir,
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise CompilerError(f"{compiler} is not installed", " ".join(command)) from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise CompilerError(
            f"{compiler} exited with status {exc.returncode}: {stderr}", " ".join(command)
        ) from exc
    return pathlib.Path(workdir) / name


def link_aliases(name: str, aliases: Iterable[str], workdir: pathlib.Path) -> List[pathlib.Path]:
    links = []
    for alias in aliases:
        links.append(make_symlink(pathlib.Path(workdir) / alias, name))
    return links


def make_symlink(link: pathlib.Path, target: str) -> pathlib.Path:
    try:
        if link.is_symlink() or link.exists():
            link.unlink()
        os.symlink(target, link)
    except OSError as exc:
        raise ConfigError(f"Unable to link {link.name} -> {target}: {exc}") from exc
    return link


def write_preview(plan: CursorRenderPlan, workdir: pathlib.Path, destination: pathlib.Path) -> pathlib.Path:
    """Assemble the native-scale steps into a looping GIF, each frame cleared before the next."""
    workdir = pathlib.Path(workdir)
    canvas = plan.canvas
    rasters: Dict[int, Image.Image] = {}
    frames: List[Image.Image] = []
    durations: List[int] = []
    delay: Optional[int] = None

    for frame in plan.frames:
        if frame.index not in rasters:
            with Image.open(workdir / printf(CROPPED_FRAME, frame.index)) as source_image:
                rasters[frame.index] = source_image.convert("RGBA")
        if frame.delay:
            delay = frame.delay
        page = Image.new("RGBA", canvas, (0, 0, 0, 0))
        page.paste(rasters[frame.index], frame_padding(plan, frame))
        frames.append(page)
        durations.append(delay or 0)

    destination = pathlib.Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    frames[0].save(
        destination,
        save_all=True,
        append_images=frames[1:],
        duration=durations,
        loop=0,
        disposal=2,
    )
    return destination


def start_preview_index(index_path: pathlib.Path) -> None:
    pathlib.Path(index_path).write_text(PREVIEW_INDEX_HEADER, encoding="utf-8")


def append_preview_index(index_path: pathlib.Path, name: str, preview: str) -> None:
    with pathlib.Path(index_path).open("a", encoding="utf-8") as handle:
        handle.write(f"{name}|![{name}]({preview})\n")


def remove_rasters(directory: pathlib.Path) -> int:
    removed = 0
    for child in sorted(pathlib.Path(directory).iterdir()):
        if child.name.endswith(".png") and not child.is_dir():
            child.unlink()
            removed += 1
    return removed


def remove_symlinks(directory: pathlib.Path) -> int:
    removed = 0
    for child in sorted(pathlib.Path(directory).iterdir()):
        if child.is_symlink():
            child.unlink()
            removed += 1
    return removed
