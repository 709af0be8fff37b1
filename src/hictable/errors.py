from __future__ import annotations


class HicTableError(Exception):
    """Base class for errors raised by hictable."""


class ValidationError(HicTableError, ValueError):
    """Malformed input: bad column, scalar type, enum value or resolution."""


class FormatError(HicTableError, ValueError):
    """Unknown file format or a format-specific parse failure."""


class SubprocessError(HicTableError, RuntimeError):
    """An external conversion tool exited with a non-zero status."""

    def __init__(self, cmd, returncode: int | None, detail: str | None = None):
        self.cmd = list(cmd)
        self.returncode = returncode
        msg = f"Command failed (exit code {returncode}): {' '.join(self.cmd)}"
        if detail:
            msg = f"{msg}\n{detail}"
        super().__init__(msg)


class PartialDataWarning(UserWarning):
    """Some requested chromosomes had no data and were skipped."""
