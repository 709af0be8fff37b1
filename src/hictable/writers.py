from __future__ import annotations

import gzip
import logging
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

import numpy as np
import pandas as pd

from . import __version__
from .config import ToolSettings, get_settings
from .errors import FormatError, ValidationError
from .external import Converter, SubprocessConverter, run_checked
from .formats import HicFormat, candidate_resolutions, guess_format, parse_format
from .reporting import ensure_dir
from .table import ContactTable, Norm
from .validation import coerce_enum

logger = logging.getLogger(__name__)

DEFAULT_HIC_NORMS = ("NONE", "VC", "VC_SQRT", "KR", "SCALE")


def write_juicer_short(table: ContactTable, path: str | Path) -> Path:
    """Write the Juicer "short with score" format; records with a missing score are dropped."""
    path = Path(path)
    ensure_dir(path.parent)

    df = table.to_dataframe()
    df = df[df["score"].notna()]
    # 0 22 16000000 0 0 22 16000000 1 95
    out = pd.DataFrame(
        {
            "str1": 0,
            "chrom1": df["chrom1"],
            "pos1": df["pos1"],
            "frag1": 0,
            "str2": 0,
            "chrom2": df["chrom2"],
            "pos2": df["pos2"],
            "frag2": 1,
            "score": df["score"],
        }
    )
    out.to_csv(path, sep=" ", header=False, index=False)
    logger.debug("Wrote %d records to %s", out.shape[0], path)
    return path


def _genbed_comments(table: ContactTable, comments: Iterable[str] | None) -> list[str]:
    meta = table.meta
    create_time = datetime.now().astimezone().strftime("%Y-%m-%dT%H:%M:%S%z")
    lines = [
        f"create_time={create_time}",
        f"resolution={meta.resolution}",
        f"type={meta.type.value}",
        f"norm={meta.norm.value}",
    ]
    if meta.genome is not None:
        lines.append(f"genome={meta.genome}")
    if meta.sample is not None:
        lines.append(f"sample={meta.sample}")
    lines.append(f"hictable_version={__version__}")
    lines.extend(comments or [])
    return [f"##{c}" for c in lines]


def write_genbed(table: ContactTable, path: str | Path, comments: Iterable[str] | None = None) -> Path:
    """Write records as paired intervals [pos, pos + resolution) with a metadata comment block.

    Extra columns follow the score. A `.gz` suffix produces gzip output.
    """

    path = Path(path)
    ensure_dir(path.parent)
    comments = list(comments) if comments is not None else None
    if comments is not None and not all(isinstance(c, str) for c in comments):
        raise ValidationError("comments must be strings")

    resolution = table.resolution
    df = table.to_dataframe()
    out = pd.DataFrame(
        {
            "chrom": df["chrom1"],
            "start": df["pos1"],
            "end": df["pos1"] + resolution,
            "chrom2": df["chrom2"],
            "start2": df["pos2"],
            "end2": df["pos2"] + resolution,
            "score": df["score"],
        }
    )
    for c in table.extra_columns:
        out[c] = df[c]

    header = "#" + "\t".join(str(c) for c in out.columns)
    opener = gzip.open if path.name.lower().endswith(".gz") else open
    with opener(path, "wt") as f:
        for line in _genbed_comments(table, comments):
            f.write(line + "\n")
        f.write(header + "\n")
        out.to_csv(f, sep="\t", header=False, index=False)

    logger.debug("Wrote %d records to %s", out.shape[0], path)
    return path


def write_matrix(
    matrix: np.ndarray,
    bin_positions: Sequence[int] | np.ndarray,
    chrom: str,
    path: str | Path,
) -> Path:
    """Write a dense matrix as TSV with `chrom-pos` labels.

    Rows (and the matching columns) that are entirely NaN are left out.
    """

    M = np.asarray(matrix, dtype=np.float64)
    pos = np.asarray(bin_positions, dtype=np.int64)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValidationError(f"Expected a square 2D matrix; got shape {M.shape}")
    if pos.shape != (M.shape[0],):
        raise ValidationError(f"Expected {M.shape[0]} bin positions; got {pos.shape}")

    keep = ~np.isnan(M).all(axis=1)
    labels = [f"{chrom}-{int(p)}" for p in pos[keep]]
    out = pd.DataFrame(M[np.ix_(keep, keep)], index=labels, columns=labels)

    path = Path(path)
    ensure_dir(path.parent)
    out.to_csv(path, sep="\t", na_rep="NA")
    return path


def write_juicer_hic(
    table: ContactTable,
    path: str | Path,
    *,
    juicer_tools: str | Path | None = None,
    java: str | None = None,
    norms: Iterable[Norm | str] = DEFAULT_HIC_NORMS,
    converter: Converter | None = None,
    settings: ToolSettings | None = None,
) -> Path:
    """Build a .hic file with `juicer_tools pre` from a temporary short-format dump.

    Resolutions written are every allow-listed one at least as coarse as the
    table's. The table must carry a genome name, which is passed to juicer_tools.
    """

    settings = settings or get_settings()
    juicer_tools = juicer_tools or settings.juicer_tools
    if not juicer_tools:
        raise ValidationError(
            "juicer_tools jar is not configured; pass juicer_tools= or set HICTABLE_JUICER_TOOLS"
        )
    java = java or settings.java
    converter = converter or SubprocessConverter(timeout=settings.timeout_seconds)

    if table.genome is None:
        raise ValidationError("Writing .hic requires the table to have a genome")
    norm_arg = ",".join(coerce_enum(Norm, n, "norm").value for n in norms)
    resolutions = ",".join(str(r) for r in candidate_resolutions(table.resolution))

    path = Path(path)
    ensure_dir(path.parent)
    with tempfile.TemporaryDirectory() as tmp:
        short_path = write_juicer_short(table, Path(tmp) / "contacts.short")
        run_checked(
            converter,
            [
                java,
                "-jar",
                str(juicer_tools),
                "pre",
                "-r",
                resolutions,
                "-k",
                norm_arg,
                str(short_path),
                str(path),
                table.genome,
            ],
        )
    return path


def write_cool(
    table: ContactTable,
    path: str | Path,
    *,
    juicer_tools: str | Path | None = None,
    java: str | None = None,
    executable: str | None = None,
    converter: Converter | None = None,
    settings: ToolSettings | None = None,
) -> Path:
    """Write a .cool file by way of a temporary .hic and `hicConvertFormat`."""

    settings = settings or get_settings()
    executable = executable or settings.hic_convert_format
    converter = converter or SubprocessConverter(timeout=settings.timeout_seconds)
    resolution = table.resolution

    path = Path(path)
    ensure_dir(path.parent)
    with tempfile.TemporaryDirectory() as tmp:
        temp_hic = write_juicer_hic(
            table,
            Path(tmp) / "contacts.hic",
            juicer_tools=juicer_tools,
            java=java,
            converter=converter,
            settings=settings,
        )
        run_checked(
            converter,
            [
                executable,
                "-m",
                str(temp_hic),
                "--inputFormat",
                "hic",
                "-r",
                str(resolution),
                "-o",
                str(path),
                "--outputFormat",
                "cool",
            ],
        )

    # For a single resolution hicConvertFormat writes foo.cool as foo_<resolution>.cool
    produced = path.with_name(f"{path.stem}_{resolution}.cool")
    if produced.exists():
        produced.replace(path)
    return path


_WRITERS: dict[HicFormat, Callable[..., Path]] = {
    HicFormat.JUICER_SHORT: write_juicer_short,
    HicFormat.JUICER_HIC: write_juicer_hic,
    HicFormat.GENBED: write_genbed,
    HicFormat.COOL: write_cool,
}


def write_hic(
    table: ContactTable,
    path: str | Path,
    format: HicFormat | str | None = None,
    **kwargs: Any,
) -> Path:
    """Write a table in the format named by `format` or implied by the suffix of `path`."""
    fmt = guess_format(path) if format is None else parse_format(format)
    writer = _WRITERS.get(fmt)
    if writer is None:
        raise FormatError(f"Writing {fmt.value} files is not supported")
    logger.debug("Writing %s as %s", path, fmt.value)
    return writer(table, path, **kwargs)
