from __future__ import annotations

from enum import Enum
from pathlib import Path

from .errors import FormatError
from .validation import check_resolution


class HicFormat(str, Enum):
    JUICER_SHORT = "juicer_short"
    JUICER_DUMP = "juicer_dump"
    JUICER_HIC = "juicer_hic"
    GENBED = "genbed"
    COOL = "cool"


# Resolutions accepted by `juicer_tools pre`, coarsest first.
ALLOWED_RESOLUTIONS: tuple[int, ...] = (
    2_500_000,
    2_000_000,
    1_000_000,
    250_000,
    200_000,
    100_000,
    25_000,
    20_000,
    10_000,
    2_500,
    2_000,
    1_000,
)

_SUFFIXES: tuple[tuple[tuple[str, ...], HicFormat], ...] = (
    ((".hic",), HicFormat.JUICER_HIC),
    ((".bed", ".bed.gz"), HicFormat.GENBED),
    ((".short", ".short.gz"), HicFormat.JUICER_SHORT),
    ((".cool",), HicFormat.COOL),
)


def guess_format(path: str | Path) -> HicFormat:
    """Map a file name to its HicFormat by suffix."""
    name = Path(path).name.lower()
    for suffixes, fmt in _SUFFIXES:
        if name.endswith(suffixes):
            return fmt
    raise FormatError(
        f"Unknown input format: {path} "
        f"(expected one of {', '.join(s for group, _ in _SUFFIXES for s in group)})"
    )


def parse_format(value: HicFormat | str) -> HicFormat:
    if isinstance(value, HicFormat):
        return value
    try:
        return HicFormat(value)
    except ValueError:
        raise FormatError(
            f"Invalid format {value!r}; expected one of: {', '.join(f.value for f in HicFormat)}"
        ) from None


def candidate_resolutions(resolution: int) -> list[int]:
    """Allow-listed resolutions at least as coarse as `resolution`."""
    resolution = check_resolution(resolution)
    return [r for r in ALLOWED_RESOLUTIONS if r >= resolution]
