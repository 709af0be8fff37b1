from __future__ import annotations

from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from .errors import ValidationError
from .table import ContactTable, DataType, Norm, TableMeta
from .validation import KEY_COLUMNS, REQUIRED_COLUMNS, check_columns


def _rows_to_frame(rows: pd.DataFrame | Iterable[Any]) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        return rows.reset_index(drop=True)

    rows = list(rows)
    if not rows:
        return pd.DataFrame({c: [] for c in REQUIRED_COLUMNS})

    if all(isinstance(r, Mapping) for r in rows):
        return pd.DataFrame.from_records(rows)

    width = {len(r) for r in rows}
    if len(width) != 1:
        raise ValidationError(f"Positional rows must all have the same length; got lengths {sorted(width)}")
    n = width.pop()
    if n < len(REQUIRED_COLUMNS):
        raise ValidationError(
            f"Positional rows need at least {len(REQUIRED_COLUMNS)} values "
            f"({', '.join(REQUIRED_COLUMNS)}); got {n}"
        )
    names = list(REQUIRED_COLUMNS) + [f"col{k}" for k in range(len(REQUIRED_COLUMNS) + 1, n + 1)]
    return pd.DataFrame.from_records([tuple(r) for r in rows], columns=names)


def guess_resolution(rows: pd.DataFrame) -> int:
    """Infer the bin size of a contact table.

    With end1/end2 columns the interval length must be the same everywhere.
    Otherwise the smallest non-zero |pos2 - pos1| is used; diagonal rows carry
    no information and are ignored.
    """

    if {"end1", "end2"}.issubset(rows.columns):
        widths = np.concatenate(
            [
                (rows["end1"] - rows["pos1"]).to_numpy(dtype=np.int64),
                (rows["end2"] - rows["pos2"]).to_numpy(dtype=np.int64),
            ]
        )
        uniq = np.unique(widths)
        if uniq.size == 0:
            raise ValidationError("Cannot infer resolution from an empty table")
        if (uniq <= 0).any():
            raise ValidationError(f"Invalid interval with end<=start (length {int(uniq.min())})")
        if uniq.size != 1:
            raise ValidationError(
                f"Ambiguous resolution: intervals have {uniq.size} distinct lengths {uniq[:10].tolist()}"
            )
        return int(uniq[0])

    d = np.abs(rows["pos2"].to_numpy(dtype=np.int64) - rows["pos1"].to_numpy(dtype=np.int64))
    d = d[d > 0]
    if d.size == 0:
        raise ValidationError(
            "Cannot infer resolution: no record has pos1 != pos2; pass resolution explicitly"
        )
    return int(d.min())


def build_table(
    rows: pd.DataFrame | Iterable[Any],
    *,
    resolution: int | None = None,
    type: DataType | str | None = None,
    norm: Norm | str | None = None,
    genome: str | None = None,
    sample: str | None = None,
    template: ContactTable | TableMeta | None = None,
) -> ContactTable:
    """Validate raw contact rows and return a sorted ContactTable.

    Args:
        rows: DataFrame, sequence of mappings, or sequence of positional rows
            (chrom1, pos1, chrom2, pos2, score, extra...)
        resolution: bin size in bp; guessed from the rows when None
        type: one of observed/oe/expected/pearson/cofrag
        norm: one of NONE/KR/VC/VC_SQRT/SCALE
        template: metadata defaults (resolution, type, norm, genome) for
            arguments left as None; sample is never inherited

    Duplicate keys are kept; rows are stably sorted by (chrom1, pos1, chrom2, pos2).
    """

    df = check_columns(_rows_to_frame(rows))

    if template is not None:
        base = template.meta if isinstance(template, ContactTable) else template
        resolution = base.resolution if resolution is None else resolution
        type = base.type if type is None else type
        norm = base.norm if norm is None else norm
        genome = base.genome if genome is None else genome

    if resolution is None:
        resolution = guess_resolution(df)

    meta = TableMeta(
        resolution=resolution,
        type=DataType.OBSERVED if type is None else type,
        norm=Norm.NONE if norm is None else norm,
        genome=genome,
        sample=sample,
    )

    extras = [c for c in df.columns if c not in REQUIRED_COLUMNS]
    df = df.loc[:, list(REQUIRED_COLUMNS) + extras]
    df = df.sort_values(list(KEY_COLUMNS), kind="stable", ignore_index=True)
    return ContactTable(df, meta)
