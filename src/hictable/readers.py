from __future__ import annotations

import gzip
import logging
import warnings
from pathlib import Path
from typing import Any, Callable, Iterable

import numpy as np
import pandas as pd

from .builder import build_table, guess_resolution
from .errors import FormatError, PartialDataWarning, ValidationError
from .formats import HicFormat, guess_format, parse_format
from .table import ContactTable, DataType, Norm, TableMeta
from .validation import REQUIRED_COLUMNS, check_resolution

logger = logging.getLogger(__name__)

# 0 22 16000000 0 0 22 16000000 1 95
SHORT_COLUMNS = ("str1", "chrom1", "pos1", "frag1", "str2", "chrom2", "pos2", "frag2", "score")
GENBED_COLUMNS = ("chrom1", "pos1", "end1", "chrom2", "pos2", "end2", "score")


def _existing(path: str | Path) -> Path:
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(str(path))
    return path


def _chrom_list(chrom: str | Iterable[str] | None) -> list[str] | None:
    if chrom is None:
        return None
    if isinstance(chrom, str):
        return [chrom]
    chroms = [str(c) for c in chrom]
    if not chroms:
        raise ValidationError("chrom must name at least one chromosome")
    return chroms


def _keep_chroms(df: pd.DataFrame, chroms: list[str] | None) -> pd.DataFrame:
    if chroms is None:
        return df
    return df[df["chrom1"].isin(chroms) & df["chrom2"].isin(chroms)]


def _read_delimited(path: Path, **kwargs: Any) -> pd.DataFrame:
    try:
        return pd.read_csv(path, header=None, **kwargs)
    except pd.errors.EmptyDataError:
        raise FormatError(f"File is empty: {path}") from None
    except (pd.errors.ParserError, ValueError) as e:
        raise FormatError(f"Failed to parse {path}: {e}") from e


def _warn_partial(msg: str) -> None:
    logger.warning(msg)
    warnings.warn(msg, PartialDataWarning, stacklevel=3)


def _loaded(table: ContactTable, path: Path) -> ContactTable:
    logger.info("Loaded %d records from %s (resolution=%d)", len(table), path, table.resolution)
    return table


def load_juicer_short(
    path: str | Path,
    *,
    chrom: str | Iterable[str] | None = None,
    resolution: int | None = None,
    type: DataType | str | None = None,
    norm: Norm | str | None = None,
    genome: str | None = None,
    sample: str | None = None,
) -> ContactTable:
    """Load a Juicer "short with score" text file.

    Each line is `str1 chrom1 pos1 frag1 str2 chrom2 pos2 frag2 score`. The
    resolution is guessed from the positions (before chromosome filtering) when
    not given.
    """

    path = _existing(path)
    df = _read_delimited(
        path,
        sep=r"\s+",
        names=list(SHORT_COLUMNS),
        dtype={"chrom1": str, "chrom2": str, "score": np.float64},
    )
    df = df.loc[:, list(REQUIRED_COLUMNS)]

    if resolution is None:
        resolution = guess_resolution(df)

    df = _keep_chroms(df, _chrom_list(chrom))
    table = build_table(
        df, resolution=resolution, type=type, norm=norm, genome=genome, sample=sample
    )
    return _loaded(table, path)


def load_juicer_dump(
    path: str | Path,
    chrom: str,
    *,
    resolution: int | None = None,
    type: DataType | str | None = None,
    norm: Norm | str | None = None,
    genome: str | None = None,
    sample: str | None = None,
) -> ContactTable:
    """Load the tab-separated `pos1 pos2 score` output of `juicer_tools dump` for one chromosome."""

    if not isinstance(chrom, str) or not chrom:
        raise ValidationError(f"chrom must be a single chromosome name; got {chrom!r}")

    path = _existing(path)
    # 16000000        16000000        95.0
    df = _read_delimited(
        path,
        sep="\t",
        names=["pos1", "pos2", "score"],
        dtype={"score": np.float64},
    )
    df = pd.DataFrame(
        {
            "chrom1": chrom,
            "pos1": df["pos1"],
            "chrom2": chrom,
            "pos2": df["pos2"],
            "score": df["score"],
        }
    )
    table = build_table(
        df, resolution=resolution, type=type, norm=norm, genome=genome, sample=sample
    )
    return _loaded(table, path)


def _read_comment_block(path: Path) -> tuple[dict[str, str], list[str] | None, int]:
    """Parse leading `##key=value` metadata lines and an optional `#col\\tcol...` header.

    Returns (metadata, header names or None, number of leading comment lines).
    """

    opener = gzip.open if path.name.lower().endswith(".gz") else open
    meta: dict[str, str] = {}
    header: list[str] | None = None
    n = 0
    with opener(path, "rt") as f:
        for line in f:
            if not line.startswith("#"):
                break
            n += 1
            body = line.rstrip("\r\n")
            if body.startswith("##"):
                key, sep, value = body[2:].partition("=")
                if sep:
                    meta[key.strip()] = value.strip()
            else:
                header = body[1:].split("\t")
    return meta, header, n


def load_genbed(
    path: str | Path,
    *,
    chrom: str | Iterable[str] | None = None,
    resolution: int | None = None,
    type: DataType | str | None = None,
    norm: Norm | str | None = None,
    genome: str | None = None,
    sample: str | None = None,
    score_col: int = 7,
    bootstrap: int | Iterable[int] | None = 1,
) -> ContactTable:
    """Load a paired-interval table (chrom, start, end, chrom2, start2, end2, score, ...).

    Metadata lines written by `write_genbed` (`##resolution=...`, `##type=...`, ...)
    fill in arguments left as None.

    Args:
        score_col: 1-based index of the score column (default 7)
        bootstrap: when a `bootstrap` column exists, keep only these iterations;
            None keeps all of them
    """

    path = _existing(path)
    meta, header, n_comments = _read_comment_block(path)

    df = _read_delimited(path, sep="\t", skiprows=n_comments, dtype={0: str, 3: str})
    if df.shape[1] < 7:
        raise FormatError(f"Expected at least 7 columns in {path}; found {df.shape[1]}")
    if not 7 <= score_col <= df.shape[1]:
        raise ValidationError(f"score_col must be between 7 and {df.shape[1]}; got {score_col}")

    if header is not None and len(header) == df.shape[1]:
        names = header
    else:
        names = [f"col{k}" for k in range(1, df.shape[1] + 1)]

    order = [0, 1, 2, 3, 4, 5, score_col - 1] + [
        k for k in range(6, df.shape[1]) if k != score_col - 1
    ]
    rest = [names[k] for k in order[7:]]
    taken = set(GENBED_COLUMNS)
    new_names = list(GENBED_COLUMNS)
    for name in rest:
        while name in taken:
            name = f"{name}_"
        taken.add(name)
        new_names.append(name)
    df = df.iloc[:, order].copy()
    df.columns = new_names

    try:
        df["score"] = df["score"].astype(np.float64)
    except (TypeError, ValueError) as e:
        raise FormatError(f"Score column {score_col} of {path} is not numeric: {e}") from e

    if bootstrap is not None and "bootstrap" in df.columns:
        wanted = [bootstrap] if isinstance(bootstrap, (int, np.integer)) else list(bootstrap)
        df = df[df["bootstrap"].isin(wanted)]

    if resolution is None and "resolution" in meta:
        try:
            resolution = int(meta["resolution"])
        except ValueError:
            raise FormatError(f"Invalid resolution comment in {path}: {meta['resolution']!r}") from None
    if resolution is None:
        resolution = guess_resolution(df)

    df = _keep_chroms(df.drop(columns=["end1", "end2"]), _chrom_list(chrom))
    table = build_table(
        df,
        resolution=resolution,
        type=type if type is not None else meta.get("type"),
        norm=norm if norm is not None else meta.get("norm"),
        genome=genome if genome is not None else meta.get("genome"),
        sample=sample if sample is not None else meta.get("sample"),
    )
    return _loaded(table, path)


def _require_hicstraw():
    try:
        import hicstraw  # type: ignore

        return hicstraw
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "Reading .hic files requires the optional dependency 'hicstraw'. "
            "Install with: pip install 'hictable[juicer]' (or pip install hicstraw)."
        ) from e


def _straw_frame(hicstraw, path: Path, chrom: str, resolution: int, matrix: str, norm: str) -> pd.DataFrame:
    recs = hicstraw.straw(matrix, norm, str(path), chrom, chrom, "BP", int(resolution))
    return pd.DataFrame(
        {
            "x": np.asarray([r.binX for r in recs], dtype=np.int64),
            "y": np.asarray([r.binY for r in recs], dtype=np.int64),
            "counts": np.asarray([r.counts for r in recs], dtype=np.float64),
        }
    )


def _straw_chrom(hicstraw, path: Path, chrom: str, meta: TableMeta) -> pd.DataFrame:
    if meta.type is DataType.EXPECTED:
        obs = _straw_frame(hicstraw, path, chrom, meta.resolution, "observed", meta.norm.value)
        oe = _straw_frame(hicstraw, path, chrom, meta.resolution, "oe", meta.norm.value)
        dt = obs.merge(oe, on=["x", "y"], suffixes=("_obs", "_oe"))
        dt = dt.assign(counts=dt["counts_obs"] / dt["counts_oe"])
    else:
        dt = _straw_frame(hicstraw, path, chrom, meta.resolution, meta.type.value, meta.norm.value)

    return pd.DataFrame(
        {
            "chrom1": pd.Series(chrom, index=dt.index, dtype=object),
            "pos1": dt["x"],
            "chrom2": pd.Series(chrom, index=dt.index, dtype=object),
            "pos2": dt["y"],
            "score": dt["counts"],
        }
    )


def load_juicer_hic(
    path: str | Path,
    resolution: int,
    *,
    chrom: str | Iterable[str] | None = None,
    type: DataType | str = DataType.OBSERVED,
    norm: Norm | str = Norm.NONE,
    genome: str | None = None,
    sample: str | None = None,
) -> ContactTable:
    """Load intra-chromosomal contacts from a Juicer .hic file via hicstraw.

    Every chromosome is read on its own: one that fails or has no data is skipped
    with a PartialDataWarning and the others are still returned. `type="expected"`
    is derived as observed / oe for each bin pair.
    """

    hicstraw = _require_hicstraw()
    path = _existing(path)
    meta = TableMeta(resolution=check_resolution(resolution), type=type, norm=norm, genome=genome, sample=sample)

    hic = hicstraw.HiCFile(str(path))
    all_chroms = [str(c.name) for c in hic.getChromosomes() if str(c.name).upper() != "ALL"]

    chroms = _chrom_list(chrom)
    if chroms is None:
        logger.info("Loading all chromosomes in %s: %s", path, ", ".join(all_chroms))
        chroms = all_chroms
    else:
        invalid = [c for c in chroms if c not in all_chroms]
        if invalid:
            raise ValidationError(f"Invalid chromosomes for {path}: {', '.join(invalid)}")

    available = [int(r) for r in hic.getResolutions()]
    if meta.resolution not in available:
        raise ValidationError(
            f"Resolution {meta.resolution} does not exist in {path}; available: {available}"
        )

    frames = []
    for c in chroms:
        try:
            dt = _straw_chrom(hicstraw, path, c, meta)
        except Exception as e:
            _warn_partial(f"File doesn't have data for chromosome {c}: {e}")
            continue
        if dt.empty:
            _warn_partial(f"File doesn't have data for chromosome {c}")
            continue
        frames.append(dt)

    rows = pd.concat(frames, ignore_index=True) if frames else []
    return _loaded(build_table(rows, template=meta, sample=meta.sample), path)


def _require_cooler():
    try:
        import cooler  # type: ignore

        return cooler
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "Reading .cool files requires the optional dependency 'cooler'. "
            "Install with: pip install 'hictable[hic]' (or pip install cooler)."
        ) from e


def load_cool(
    path: str | Path,
    *,
    chrom: str | Iterable[str] | None = None,
    type: DataType | str | None = None,
    norm: Norm | str | None = None,
    genome: str | None = None,
    sample: str | None = None,
) -> ContactTable:
    """Load raw (unbalanced) pixels from a single-resolution Cooler file.

    With `chrom`, records whose two ends both lie on the listed chromosomes are
    kept, so contacts between two listed chromosomes survive. The genome
    defaults to the cooler's `genome-assembly` attribute unless that is cooler's
    "unknown" placeholder.
    """

    cooler = _require_cooler()
    path = _existing(path)
    c = cooler.Cooler(str(path))

    chroms = _chrom_list(chrom)
    if chroms is not None:
        unknown = [x for x in chroms if x not in c.chromnames]
        if unknown:
            raise ValidationError(f"Invalid chromosomes for {path}: {', '.join(unknown)}")

    pixels = c.pixels(join=True)[:]
    pixels = pixels.rename(columns={"start1": "pos1", "start2": "pos2", "count": "score"})
    pixels["chrom1"] = pixels["chrom1"].astype(str)
    pixels["chrom2"] = pixels["chrom2"].astype(str)
    pixels["score"] = pixels["score"].astype(np.float64)

    resolution = c.binsize if c.binsize is not None else guess_resolution(pixels)
    if genome is None:
        assembly = c.info.get("genome-assembly")
        if assembly is not None and str(assembly).strip() and str(assembly) != "unknown":
            genome = str(assembly)

    rows = _keep_chroms(pixels.loc[:, list(REQUIRED_COLUMNS)], chroms)
    table = build_table(
        rows, resolution=int(resolution), type=type, norm=norm, genome=genome, sample=sample
    )
    return _loaded(table, path)


_LOADERS: dict[HicFormat, Callable[..., ContactTable]] = {
    HicFormat.JUICER_SHORT: load_juicer_short,
    HicFormat.JUICER_DUMP: load_juicer_dump,
    HicFormat.JUICER_HIC: load_juicer_hic,
    HicFormat.GENBED: load_genbed,
    HicFormat.COOL: load_cool,
}


def load_hic(path: str | Path, format: HicFormat | str = "auto", **kwargs: Any) -> ContactTable:
    """Load a contact table from any supported format.

    `format="auto"` picks the reader from the file suffix. Remaining keyword
    arguments go to the reader (see load_juicer_short, load_juicer_dump,
    load_juicer_hic, load_genbed, load_cool).
    """

    path = _existing(path)
    fmt = guess_format(path) if format == "auto" else parse_format(format)
    logger.debug("Reading %s as %s", path, fmt.value)
    return _LOADERS[fmt](path, **kwargs)
