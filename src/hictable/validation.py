from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

import numpy as np
import pandas as pd

from .errors import ValidationError

KEY_COLUMNS = ("chrom1", "pos1", "chrom2", "pos2")
REQUIRED_COLUMNS = KEY_COLUMNS + ("score",)

E = TypeVar("E", bound=Enum)


def check_resolution(resolution: Any) -> int:
    """Return `resolution` as int, or raise if it is not a positive integer."""
    if isinstance(resolution, (bool, np.bool_)) or not isinstance(
        resolution, (int, np.integer)
    ):
        raise ValidationError(
            f"Resolution must be a positive integer; got {resolution!r} "
            f"({type(resolution).__name__})"
        )
    if resolution <= 0:
        raise ValidationError(f"Resolution must be a positive integer; got {resolution}")
    return int(resolution)


def check_optional_name(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field} must be a non-empty string or None; got {value!r}")
    return value


def coerce_enum(enum_cls: type[E], value: Any, field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid {field} {value!r}; expected one of: {allowed}"
        ) from None


def _is_str_column(s: pd.Series) -> bool:
    return bool(s.map(lambda v: isinstance(v, str)).all())


def check_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Check the required contact columns and return a frame with canonical dtypes.

    chrom1/chrom2 must hold non-empty strings, pos1/pos2 non-negative integers and
    score floating-point values (NaN allowed).
    """

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValidationError(
            f"Missing required column(s) {missing}; "
            f"expected at least {list(REQUIRED_COLUMNS)}, got {list(df.columns)}"
        )

    df = df.copy()
    if df.empty:
        return df.astype(
            {"chrom1": object, "pos1": np.int64, "chrom2": object, "pos2": np.int64, "score": np.float64}
        )

    for c in ("chrom1", "chrom2"):
        if not _is_str_column(df[c]):
            bad = df[c][~df[c].map(lambda v: isinstance(v, str))].iloc[0]
            raise ValidationError(f"Column {c!r} must hold strings; found {bad!r}")
        if (df[c].str.len() == 0).any():
            raise ValidationError(f"Column {c!r} contains empty chromosome names")
        df[c] = df[c].astype(object)

    for c in ("pos1", "pos2"):
        s = df[c]
        if pd.api.types.is_bool_dtype(s) or not pd.api.types.is_integer_dtype(s):
            raise ValidationError(f"Column {c!r} must be integer-typed; got dtype {s.dtype}")
        if (s < 0).any():
            bad = int(s[s < 0].iloc[0])
            raise ValidationError(f"Column {c!r} must be non-negative; found {bad}")
        df[c] = s.astype(np.int64)

    if not pd.api.types.is_float_dtype(df["score"]):
        raise ValidationError(f"Column 'score' must be floating-point; got dtype {df['score'].dtype}")
    df["score"] = df["score"].astype(np.float64)

    return df
