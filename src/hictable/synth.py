from __future__ import annotations

import numpy as np
import pandas as pd

from .builder import build_table
from .table import ContactTable


def make_synthetic_table(
    n_bins: int,
    *,
    resolution: int = 100_000,
    chrom: str = "chr1",
    seed: int = 0,
    bandwidth: int = 32,
    scale: float = 12.0,
    community_boost: float = 2.0,
    start: int = 0,
    genome: str | None = None,
    sample: str | None = None,
) -> ContactTable:
    """Create a single-chromosome contact table with distance decay + block structure.

    Only the upper triangle (pos1 <= pos2) is stored, one record per bin pair.
    """
    rng = np.random.default_rng(int(seed))
    n = int(n_bins)
    bw = int(bandwidth)

    rows = []
    cols = []
    data = []

    # Two communities
    half = n // 2

    for i in range(n):
        for j in range(i, min(n - 1, i + bw) + 1):
            base = np.exp(-(j - i) / float(scale))
            if (i < half and j < half) or (i >= half and j >= half):
                base *= float(community_boost)
            # Poisson counts; zero-count pairs are not stored
            w = rng.poisson(100.0 * base)
            if w <= 0:
                continue
            rows.append(i)
            cols.append(j)
            data.append(float(w))

    row = np.asarray(rows, dtype=np.int64)
    col = np.asarray(cols, dtype=np.int64)

    df = pd.DataFrame(
        {
            "chrom1": pd.Series([chrom] * row.size, dtype=object),
            "pos1": int(start) + row * int(resolution),
            "chrom2": pd.Series([chrom] * row.size, dtype=object),
            "pos2": int(start) + col * int(resolution),
            "score": np.asarray(data, dtype=np.float64),
        }
    )
    return build_table(df, resolution=int(resolution), genome=genome, sample=sample)
