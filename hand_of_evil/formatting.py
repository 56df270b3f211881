import re

from .errors import FormatError

RE_PRINTF = re.compile(r"%([^a-z%]*)([a-z%])")
RE_FORMAT_SPECIFIER = re.compile(r"^([-+ #0])?([0-9]+|\*)?(?:\.([0-9]+))?$")


def printf(template: str, *args) -> str:
    """printf-style substitution limited to ``%s``, ``%d`` and ``%%``.

    ``%d`` is always zero padded to the requested width, so ``%4d`` and
    ``%04d`` both render 7 as ``0007``.
    """
    values = iter(args)

    def _next(specifier: str):
        try:
            return next(values)
        except StopIteration:
            raise FormatError(f"Missing argument for {specifier} in {template!r}") from None

    def _substitute(match: re.Match) -> str:
        specifier = match.group(0)
        params, letter = match.groups()
        if letter == "%":
            return "%"
        if letter == "s":
            return str(_next(specifier))
        if letter == "d":
            parsed = RE_FORMAT_SPECIFIER.match(params)
            if not parsed:
                raise FormatError(f"Unexpected specifier {specifier}")
            width = parsed.group(2)
            value = _next(specifier)
            if width is None or width == "*":
                return str(value)
            return str(value).rjust(int(width), "0")
        raise FormatError(f"Unexpected specifier {specifier}")

    return RE_PRINTF.sub(_substitute, template)
