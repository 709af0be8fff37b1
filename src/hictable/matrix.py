from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import pandas as pd
from scipy.sparse import coo_matrix, csr_matrix

from .builder import build_table
from .errors import ValidationError
from .table import ContactRecord, ContactTable
from .validation import check_resolution


def _resolve_chrom(table: ContactTable, chrom: str | None) -> str:
    if chrom is not None:
        return str(chrom)
    chroms = table.chroms()
    if len(chroms) != 1:
        raise ValidationError(
            f"Cannot infer chromosome: table holds {len(chroms)} chromosomes "
            f"({', '.join(chroms[:10])}); pass chrom explicitly"
        )
    return chroms[0]


def _cis_bins(
    table: ContactTable, chrom: str | None, full_matrix: bool
) -> tuple[np.ndarray, np.ndarray, np.ndarray, int, int]:
    """Bin the intra-chromosomal records of one chromosome.

    Returns (a, b, score, min_pos, n) with a <= b, one entry per distinct unordered
    bin pair. Two records on the same bin pair must agree on the score.
    """

    resolution = check_resolution(table.resolution)
    chrom = _resolve_chrom(table, chrom)

    df = table.to_dataframe()
    df = df[(df["chrom1"] == chrom) & (df["chrom2"] == chrom)]
    if df.empty:
        raise ValidationError(f"No intra-chromosomal records for chrom={chrom!r}")

    pos1 = df["pos1"].to_numpy(dtype=np.int64)
    pos2 = df["pos2"].to_numpy(dtype=np.int64)
    score = df["score"].to_numpy(dtype=np.float64)

    min_pos = 0 if full_matrix else int(min(pos1.min(), pos2.min()))
    max_pos = int(max(pos1.max(), pos2.max()))
    n = (max_pos - min_pos) // resolution + 1

    i = (pos1 - min_pos) // resolution
    j = (pos2 - min_pos) // resolution

    pairs = pd.DataFrame({"a": np.minimum(i, j), "b": np.maximum(i, j), "score": score})
    pairs = pairs.drop_duplicates(["a", "b", "score"])
    clash = pairs.duplicated(["a", "b"], keep=False)
    if clash.any():
        a, b = pairs.loc[clash, ["a", "b"]].iloc[0]
        values = pairs.loc[(pairs["a"] == a) & (pairs["b"] == b), "score"].tolist()
        raise ValidationError(
            f"Conflicting scores {values} for bin pair "
            f"({chrom}:{min_pos + a * resolution}, {chrom}:{min_pos + b * resolution})"
        )

    return (
        pairs["a"].to_numpy(dtype=np.int64),
        pairs["b"].to_numpy(dtype=np.int64),
        pairs["score"].to_numpy(dtype=np.float64),
        min_pos,
        int(n),
    )


def to_matrix(
    table: ContactTable,
    chrom: str | None = None,
    *,
    missing_score: float = np.nan,
    full_matrix: bool = False,
) -> tuple[np.ndarray, np.ndarray]:
    """Convert one chromosome of a contact table to a dense symmetric matrix.

    Args:
        chrom: chromosome to extract; inferred when the table holds only one
        missing_score: value of cells without a record
        full_matrix: if True the first bin starts at position 0, otherwise at the
            smallest observed position

    Returns:
        matrix: (n, n) float64, symmetric
        bin_positions: (n,) start position of each row/column
    """

    a, b, score, min_pos, n = _cis_bins(table, chrom, full_matrix)
    fill = np.nan if missing_score is None else float(missing_score)

    mat = np.full((n, n), fill, dtype=np.float64)
    mat[a, b] = score
    mat[b, a] = score

    bin_positions = min_pos + table.resolution * np.arange(n, dtype=np.int64)
    return mat, bin_positions


def to_sparse(
    table: ContactTable,
    chrom: str | None = None,
    *,
    full_matrix: bool = False,
) -> tuple[csr_matrix, np.ndarray]:
    """Same layout as `to_matrix`, as a symmetric scipy sparse matrix.

    Records with a missing (NaN) score are left out.
    """

    a, b, score, min_pos, n = _cis_bins(table, chrom, full_matrix)
    keep = ~np.isnan(score)
    a, b, score = a[keep], b[keep], score[keep]

    off = a != b
    rows = np.concatenate([a, b[off]])
    cols = np.concatenate([b, a[off]])
    data = np.concatenate([score, score[off]])

    A = coo_matrix((data, (rows, cols)), shape=(n, n), dtype=np.float64).tocsr()
    bin_positions = min_pos + table.resolution * np.arange(n, dtype=np.int64)
    return A, bin_positions


def to_records(
    matrix: np.ndarray,
    bin_positions: Sequence[int] | np.ndarray,
    chrom: str,
    resolution: int,
    *,
    missing_score: float = np.nan,
) -> list[ContactRecord]:
    """Turn a dense symmetric matrix back into one record per unordered bin pair.

    Only the upper triangle (diagonal included) is read, row by row. Cells that are
    NaN or equal to `missing_score` are skipped.
    """

    resolution = check_resolution(resolution)
    if not isinstance(chrom, str) or not chrom:
        raise ValidationError(f"chrom must be a non-empty string; got {chrom!r}")

    M = np.asarray(matrix, dtype=np.float64)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValidationError(f"Expected a square 2D matrix; got shape {M.shape}")
    n = M.shape[0]
    if n == 0:
        raise ValidationError("Matrix is empty")

    pos = np.asarray(bin_positions, dtype=np.int64)
    if pos.shape != (n,):
        raise ValidationError(f"Expected {n} bin positions; got {pos.shape[0] if pos.ndim else pos}")
    if n > 1 and (np.diff(pos) != resolution).any():
        raise ValidationError(f"Bin positions must be spaced by the resolution ({resolution})")

    iu, ju = np.triu_indices(n)
    vals = M[iu, ju]
    keep = ~np.isnan(vals)
    if missing_score is not None and not np.isnan(missing_score):
        keep &= vals != missing_score

    return [
        ContactRecord(chrom, int(pos[i]), chrom, int(pos[j]), float(v))
        for i, j, v in zip(iu[keep], ju[keep], vals[keep])
    ]


def matrix_to_table(
    matrix: np.ndarray,
    bin_positions: Sequence[int] | np.ndarray,
    chrom: str,
    resolution: int,
    *,
    missing_score: float = np.nan,
    **meta: Any,
) -> ContactTable:
    """Build a ContactTable from a dense matrix; `meta` goes to build_table."""
    records = to_records(matrix, bin_positions, chrom, resolution, missing_score=missing_score)
    rows = pd.DataFrame(
        {
            "chrom1": pd.Series([r.chrom1 for r in records], dtype=object),
            "pos1": np.asarray([r.pos1 for r in records], dtype=np.int64),
            "chrom2": pd.Series([r.chrom2 for r in records], dtype=object),
            "pos2": np.asarray([r.pos2 for r in records], dtype=np.int64),
            "score": np.asarray([r.score for r in records], dtype=np.float64),
        }
    )
    return build_table(rows, resolution=resolution, **meta)
