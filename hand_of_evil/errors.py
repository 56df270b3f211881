from typing import Optional


class CursorBuildError(Exception):
    """Base class for every failure raised while building cursors."""


class ConfigError(CursorBuildError):
    pass


class FormatError(ConfigError, ValueError):
    pass


class HotspotError(CursorBuildError):
    pass


class ArchiveChecksumError(CursorBuildError):
    pass


class ToolError(CursorBuildError):
    """A raster or compiler step failed; ``command`` describes what was run."""

    def __init__(self, message: str, command: Optional[str] = None) -> None:
        super().__init__(message)
        self.command = command

    def __str__(self) -> str:
        message = super().__str__()
        if self.command:
            return f"{message} (command: {self.command})"
        return message


class TransformError(ToolError):
    pass


class CompilerError(ToolError):
    pass
