import argparse
import pathlib
import shutil
import sys
from typing import List, Optional

from .aggregate import FrameAggregator
from .archive import ARCHIVE_MD5, extract_archive, package_theme, verify_archive, write_theme_index
from .config import (
    DECLARATION_FORMAT,
    AliasEntry,
    CursorEntry,
    Entry,
    MappingParser,
    load_document,
)
from .errors import ArchiveChecksumError, CursorBuildError
from .output import (
    XCURSORGEN,
    append_preview_index,
    compile_xcursor,
    link_aliases,
    make_symlink,
    remove_rasters,
    remove_symlinks,
    start_preview_index,
    write_preview,
)
from .render import MultiResolutionRenderer

MODES = ("xcursor", "gif")
DEFAULT_ARCHIVE = "HandOfEvil.zip"
DEFAULT_CONFIG = "mapping.conf"
DEFAULT_OUTPUT = {"xcursor": "hand-of-evil", "gif": "previews"}
DEFAULT_THEME_NAME = "Hand of Evil"
PREVIEW_INDEX = "previews.md"


class ErrorReport:
    def __init__(self) -> None:
        self.count = 0

    def error(self, line: int, message: object) -> None:
        print(f"LINE {line}: {message}", file=sys.stderr)
        self.count += 1


class CursorGenerator:
    def __init__(
        self,
        mode: str,
        workdir: pathlib.Path,
        preview_index: Optional[pathlib.Path] = None,
        compiler: str = XCURSORGEN,
    ) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown mode: {mode}")
        self.mode = mode
        self.workdir = pathlib.Path(workdir)
        self.preview_index = preview_index
        self.compiler = compiler
        self.aggregator = FrameAggregator(self.workdir)
        self.renderer = MultiResolutionRenderer(self.workdir)

    def handle(self, entry: Entry) -> None:
        if isinstance(entry, AliasEntry):
            make_symlink(self.workdir / entry.link, entry.target)
        else:
            self.build(entry)

    def build(self, entry: CursorEntry) -> None:
        spec = entry.spec
        if self.mode == "xcursor":
            link_aliases(spec.name, spec.aliases, self.workdir)
        plan = self.aggregator.aggregate(spec)

        print(f"    Generating {spec.name}...")
        if self.mode == "xcursor":
            steps = self.renderer.render(plan, entry.scales)
            compile_xcursor(spec.name, steps, self.workdir, self.compiler)
        else:
            write_preview(plan, self.workdir, self.workdir / f"{spec.name}.gif")
            if self.preview_index is not None:
                append_preview_index(self.preview_index, spec.name, f"{self.workdir.name}/{spec.name}.gif")


def run_mapping(config_path: pathlib.Path, generator: CursorGenerator) -> ErrorReport:
    report = ErrorReport()
    parser = MappingParser()
    with config_path.open("r", encoding="utf-8") as handle:
        for number, line in enumerate(handle, start=1):
            try:
                entry = parser.parse_line(line)
                if entry is not None:
                    generator.handle(entry)
            except CursorBuildError as exc:
                report.error(number, exc)
    return report


def run_document(config_path: pathlib.Path, generator: CursorGenerator) -> ErrorReport:
    try:
        document = load_document(config_path)
        for entry in document.entries:
            generator.handle(entry)
    except CursorBuildError as exc:
        raise SystemExit(f"ERROR: {config_path}: {exc}") from exc
    return ErrorReport()


def print_install_instructions(output_dir: pathlib.Path, tarball: pathlib.Path) -> None:
    print(
        "You can now install the theme with one of the following ways:\n"
        "1. Using GUI, i.e. in KDE choose \"cursor theme\" from menu and install from:\n"
        f"{tarball}\n"
        "2. Manual way is to do:\n"
        f"  sudo mv {output_dir} /usr/share/icons\n"
        "sudo update-alternatives --install /usr/share/icons/default/index.theme x-cursor-theme "
        f"/usr/share/icons/{output_dir.name}/index.theme 200"
    )


def generate(
    mode: str,
    archive: pathlib.Path,
    config_path: pathlib.Path,
    output_dir: pathlib.Path,
    md5: str = ARCHIVE_MD5,
    theme_name: str = DEFAULT_THEME_NAME,
    compiler: str = XCURSORGEN,
) -> int:
    archive = pathlib.Path(archive).resolve()
    config_path = pathlib.Path(config_path).resolve()
    output_dir = pathlib.Path(output_dir).resolve()

    try:
        verify_archive(archive, md5)
    except ArchiveChecksumError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    workdir = output_dir / "cursors" if mode == "xcursor" else output_dir
    shutil.rmtree(workdir, ignore_errors=True)
    workdir.mkdir(parents=True, exist_ok=True)
    try:
        extract_archive(archive, workdir)
    except CursorBuildError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    preview_index = None
    if mode == "gif":
        preview_index = output_dir.parent / PREVIEW_INDEX
        start_preview_index(preview_index)

    generator = CursorGenerator(mode, workdir, preview_index, compiler)
    if config_path.suffix.lower() == ".json":
        report = run_document(config_path, generator)
    else:
        report = run_mapping(config_path, generator)

    if report.count == 0:
        print("\nGeneration completed.")
    else:
        print(
            f"\n{report.count} errors occurred during parsing {config_path.name} file.\n"
            "Please make sure that all the mentioned lines conform to the following format:\n"
            f"{DECLARATION_FORMAT}\n",
            file=sys.stderr,
        )

    remove_rasters(workdir)
    if mode == "gif":
        remove_symlinks(workdir)
    else:
        write_theme_index(output_dir, theme_name)
        tarball = package_theme(output_dir, output_dir.parent / f"{output_dir.name}.tar.gz")
        print_install_instructions(output_dir, tarball)

    return 0 if report.count == 0 else 1


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--archive", default=DEFAULT_ARCHIVE, help="asset archive to extract frames from")
    common.add_argument("--config", default=DEFAULT_CONFIG,
                        help="mapping.conf declarations or a .json cursor document")
    common.add_argument("--output", help="output directory")
    common.add_argument("--md5", default=ARCHIVE_MD5, help="expected archive checksum")

    parser = argparse.ArgumentParser(prog="hand-of-evil", description="Build the Hand of Evil cursors.")
    commands = parser.add_subparsers(dest="command", required=True)
    xcursor = commands.add_parser("xcursor", parents=[common], help="generate the XCURSOR theme")
    xcursor.add_argument("--theme-name", default=DEFAULT_THEME_NAME)
    xcursor.add_argument("--compiler", default=XCURSORGEN, help="xcursorgen executable")
    commands.add_parser("gif", parents=[common], help="generate GIF previews")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    output_dir = pathlib.Path(args.output or DEFAULT_OUTPUT[args.command])

    if args.command == "xcursor":
        print("Generating XCURSOR theme...\n")
        return generate(
            "xcursor",
            pathlib.Path(args.archive),
            pathlib.Path(args.config),
            output_dir,
            md5=args.md5,
            theme_name=args.theme_name,
            compiler=args.compiler,
        )

    print("Generating GIF previews...")
    return generate("gif", pathlib.Path(args.archive), pathlib.Path(args.config), output_dir, md5=args.md5)


if __name__ == "__main__":
    sys.exit(main())
