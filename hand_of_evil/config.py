import json
import pathlib
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .aggregate import parse_frame_token
from .errors import ConfigError, TransformError
from .models import CursorSpec, ScaleConfig
from .transform import parse_operation

RE_EMPTY_LINE = re.compile(r"^\s*(?:#.*)?$")
RE_HOTSPOT = re.compile(r"^\d+:\d+$")

DECLARATION_FORMAT = "name1 [name2, ...] x:y prefix frame1 [frame2, ...]"

DEFAULT_FILE_TEMPLATE = "%s%s"
DEFAULT_SIZES = ["100%"]

DEFAULT_DOCUMENT_CONFIG: Dict[str, Any] = {
    "file_name": DEFAULT_FILE_TEMPLATE,
    "file_mask": DEFAULT_FILE_TEMPLATE,
    "sizes": DEFAULT_SIZES,
    "effects": {},
    "aliases": {},
    "cursors": [],
}

DEFAULT_CURSOR_CONFIG: Dict[str, Any] = {
    "aliases": [],
    "mirror": False,
    "rotate": 0,
    "do": [],
    "effects": [],
}


@dataclass(frozen=True)
class CursorEntry:
    spec: CursorSpec
    scales: Tuple[ScaleConfig, ...]


@dataclass(frozen=True)
class AliasEntry:
    link: str
    target: str


Entry = Union[CursorEntry, AliasEntry]


@dataclass
class MappingDocument:
    entries: List[Entry]


def deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: pathlib.Path) -> Dict[str, Any]:
    if path.exists() and path.stat().st_size > 0:
        try:
            with path.open("r", encoding="utf-8") as handle:
                overrides = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc
        if not isinstance(overrides, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object.")
    else:
        raise ConfigError(f"Config file {path} does not exists or is empty.")
    return overrides


def parse_scales(values: Sequence[Any]) -> Tuple[ScaleConfig, ...]:
    if isinstance(values, str) or not values:
        raise ConfigError("At least one output size is required")
    return tuple(ScaleConfig.parse(value) for value in values)


def check_operations(tokens: Sequence[str]) -> Tuple[str, ...]:
    for token in tokens:
        try:
            parse_operation(token)
        except TransformError as exc:
            raise ConfigError(str(exc)) from exc
    return tuple(tokens)


def expand_effects(
    names: Sequence[str],
    library: Dict[str, Sequence[str]],
    trail: Tuple[str, ...] = (),
) -> Tuple[str, ...]:
    """Resolve effect names into operation tokens; effects may be built from other effects."""
    operations: List[str] = []
    for name in names:
        if name in library:
            if name in trail:
                chain = " -> ".join(trail + (name,))
                raise ConfigError(f"Effect {name!r} refers to itself: {chain}")
            operations.extend(expand_effects(library[name], library, trail + (name,)))
        else:
            operations.extend(check_operations([name]))
    return tuple(operations)


def _parse_number(value: Any, what: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {what}: {value!r}") from exc


def _check_frames(frames: Sequence[str]) -> Tuple[str, ...]:
    if not frames:
        raise ConfigError("At least one frame is required")
    for token in frames:
        parse_frame_token(token)
    return tuple(frames)


class MappingParser:
    """Line-oriented ``mapping.conf`` front-end.

    ``!do``, ``!rotate`` and ``!flop`` apply to the next cursor only; every
    other option stays in effect until it is set again.
    """

    def __init__(self) -> None:
        self.file_name = DEFAULT_FILE_TEMPLATE
        self.file_mask = DEFAULT_FILE_TEMPLATE
        self.scales = parse_scales(DEFAULT_SIZES)
        self.effects: Tuple[str, ...] = ()
        self._reset_pending()

    def _reset_pending(self) -> None:
        self.extra: Tuple[str, ...] = ()
        self.rotate: float = 0
        self.mirror = False

    def parse_line(self, line: str) -> Optional[Entry]:
        if RE_EMPTY_LINE.match(line):
            return None
        args = line.split()
        if args[0].startswith("!"):
            return self._parse_option(args[0], args[1:])
        return self._parse_cursor(args)

    def _parse_option(self, option: str, params: List[str]) -> Optional[Entry]:
        if option in ("!file-name", "!file-mask", "!rotate") and not params:
            raise ConfigError(f"Option {option} requires a value")
        if option == "!file-name":
            self.file_name = params[0]
        elif option == "!file-mask":
            self.file_mask = params[0]
        elif option == "!do":
            self.extra = check_operations(params)
        elif option == "!rotate":
            self.rotate = _parse_number(params[0], "rotation angle")
        elif option == "!flop":
            self.mirror = True
        elif option == "!sizes":
            self.scales = parse_scales(params)
        elif option == "!effect":
            self.effects = check_operations(params)
        elif option == "!alias":
            if len(params) != 2:
                raise ConfigError("Option !alias requires a link name and a target")
            return AliasEntry(params[0], params[1])
        else:
            raise ConfigError(f"Unknown option: {option}")
        return None

    def _parse_cursor(self, args: List[str]) -> CursorEntry:
        extra, rotate, mirror = self.extra, self.rotate, self.mirror
        self._reset_pending()

        hotspot_index = next((i for i, arg in enumerate(args) if RE_HOTSPOT.match(arg)), None)
        if hotspot_index is None:
            raise ConfigError("Missing hotspot, expected x:y")
        if hotspot_index == 0:
            raise ConfigError("Missing cursor name")
        if hotspot_index + 1 >= len(args):
            raise ConfigError("Missing file prefix")

        names = args[:hotspot_index]
        hot_x, hot_y = (int(value) for value in args[hotspot_index].split(":"))
        spec = CursorSpec(
            name=names[0],
            aliases=tuple(names[1:]),
            hotspot=(hot_x, hot_y),
            prefix=args[hotspot_index + 1],
            frames=_check_frames(args[hotspot_index + 2:]),
            mirror=mirror,
            rotate=rotate,
            extra=extra,
            effects=self.effects,
            file_name=self.file_name,
            file_mask=self.file_mask,
        )
        return CursorEntry(spec, self.scales)


def _parse_document_cursor(
    position: int,
    cursor_json: Any,
    document: Dict[str, Any],
    library: Dict[str, Sequence[str]],
) -> CursorSpec:
    if not isinstance(cursor_json, dict):
        raise ConfigError(f"Cursor #{position} must be a JSON object")
    cursor_config = json.loads(json.dumps(DEFAULT_CURSOR_CONFIG))
    cursor_config = deep_merge(cursor_config, cursor_json)

    name = cursor_config.get("name")
    if not name:
        raise ConfigError(f"Cursor #{position} has no name")

    hotspot = cursor_config.get("hotspot")
    if not isinstance(hotspot, (list, tuple)) or len(hotspot) != 2:
        raise ConfigError(f"Cursor {name}: hotspot must be a [x, y] pair")
    hot_x = _parse_number(hotspot[0], f"hotspot of {name}")
    hot_y = _parse_number(hotspot[1], f"hotspot of {name}")

    prefix = cursor_config.get("prefix")
    if not isinstance(prefix, str):
        raise ConfigError(f"Cursor {name}: prefix must be a string")

    mirror = cursor_config.get("mirror")
    if not isinstance(mirror, bool):
        raise ConfigError(f"Cursor {name}: mirror must be true or false")

    frames = [str(token) for token in cursor_config.get("frames") or []]
    try:
        frames = _check_frames(frames)
        extra = check_operations(cursor_config.get("do") or [])
        effects = expand_effects(cursor_config.get("effects") or [], library)
    except ConfigError as exc:
        raise ConfigError(f"Cursor {name}: {exc}") from exc

    return CursorSpec(
        name=name,
        aliases=tuple(cursor_config.get("aliases") or []),
        hotspot=(hot_x, hot_y),
        prefix=prefix,
        frames=frames,
        mirror=mirror,
        rotate=_parse_number(cursor_config.get("rotate") or 0, f"rotation of {name}"),
        extra=extra,
        effects=effects,
        file_name=document["file_name"],
        file_mask=document["file_mask"],
    )


def load_document(path: pathlib.Path) -> MappingDocument:
    document = json.loads(json.dumps(DEFAULT_DOCUMENT_CONFIG))
    document = deep_merge(document, load_config(pathlib.Path(path)))

    scales = parse_scales(document.get("sizes"))
    library = document.get("effects") or {}
    if not isinstance(library, dict):
        raise ConfigError("effects must map effect names to operation lists")

    entries: List[Entry] = []
    for link, target in (document.get("aliases") or {}).items():
        entries.append(AliasEntry(link, target))

    cursors_json = document.get("cursors")
    if not isinstance(cursors_json, list):
        raise ConfigError("cursors must be a list")
    for position, cursor_json in enumerate(cursors_json, start=1):
        spec = _parse_document_cursor(position, cursor_json, document, library)
        entries.append(CursorEntry(spec, scales))

    return MappingDocument(entries)
