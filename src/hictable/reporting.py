from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .table import ContactTable


def ensure_dir(p: str | Path) -> Path:
    path = Path(p)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(obj: Any, path: str | Path) -> None:
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True))


def describe_table(table: ContactTable) -> dict[str, Any]:
    """JSON-friendly summary of a table's metadata and content."""
    df = table.to_dataframe()
    cis = df["chrom1"] == df["chrom2"]
    return {
        "resolution": table.resolution,
        "type": table.type.value,
        "norm": table.norm.value,
        "genome": table.genome,
        "sample": table.sample,
        "n_records": len(table),
        "n_cis": int(cis.sum()),
        "n_trans": int((~cis).sum()),
        "n_missing_score": int(df["score"].isna().sum()),
        "chroms": table.chroms(),
        "extra_columns": table.extra_columns,
    }
