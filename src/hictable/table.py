from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping

import pandas as pd

from .errors import ValidationError
from .validation import (
    KEY_COLUMNS,
    REQUIRED_COLUMNS,
    check_columns,
    check_optional_name,
    check_resolution,
    coerce_enum,
)


class DataType(str, Enum):
    """What the score column means."""

    OBSERVED = "observed"
    OE = "oe"
    EXPECTED = "expected"
    PEARSON = "pearson"
    COFRAG = "cofrag"


class Norm(str, Enum):
    """Normalization already applied to the scores (labels only)."""

    NONE = "NONE"
    KR = "KR"
    VC = "VC"
    VC_SQRT = "VC_SQRT"
    SCALE = "SCALE"


@dataclass(frozen=True)
class TableMeta:
    """Metadata envelope of a contact table.

    Strings are accepted for `type` and `norm` and coerced to the enums; values
    outside the enumerations raise ValidationError at construction.
    """

    resolution: int
    type: DataType = DataType.OBSERVED
    norm: Norm = Norm.NONE
    genome: str | None = None
    sample: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "resolution", check_resolution(self.resolution))
        object.__setattr__(self, "type", coerce_enum(DataType, self.type, "type"))
        object.__setattr__(self, "norm", coerce_enum(Norm, self.norm, "norm"))
        object.__setattr__(self, "genome", check_optional_name(self.genome, "genome"))
        object.__setattr__(self, "sample", check_optional_name(self.sample, "sample"))


@dataclass(frozen=True)
class ContactRecord:
    chrom1: str
    pos1: int
    chrom2: str
    pos2: int
    score: float
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, int, str, int]:
        return (self.chrom1, self.pos1, self.chrom2, self.pos2)


class ContactTable:
    """Sorted contact records plus their metadata.

    Use `hictable.builder.build_table` to create tables: it coerces rows, fills
    metadata and sorts. The constructor only accepts a frame that is already in
    canonical form (required columns first, valid dtypes, sorted by key) and
    keeps its own copy of it. A table is never modified after construction;
    filtering returns a new table and `to_dataframe` hands out a copy.
    """

    def __init__(self, data: pd.DataFrame, meta: TableMeta):
        if tuple(data.columns[: len(REQUIRED_COLUMNS)]) != REQUIRED_COLUMNS:
            raise ValidationError(
                f"ContactTable columns must start with {list(REQUIRED_COLUMNS)}; "
                f"got {list(data.columns)} (use build_table)"
            )
        if not isinstance(meta, TableMeta):
            raise ValidationError(f"meta must be a TableMeta; got {type(meta).__name__}")
        data = check_columns(data).reset_index(drop=True)
        keys = data.loc[:, list(KEY_COLUMNS)]
        if not keys.equals(keys.sort_values(list(KEY_COLUMNS), kind="stable")):
            raise ValidationError("ContactTable rows must be sorted by (chrom1, pos1, chrom2, pos2) (use build_table)")
        self._data = data
        self._meta = meta

    @property
    def meta(self) -> TableMeta:
        return self._meta

    @property
    def resolution(self) -> int:
        return self._meta.resolution

    @property
    def type(self) -> DataType:
        return self._meta.type

    @property
    def norm(self) -> Norm:
        return self._meta.norm

    @property
    def genome(self) -> str | None:
        return self._meta.genome

    @property
    def sample(self) -> str | None:
        return self._meta.sample

    @property
    def extra_columns(self) -> list[str]:
        return [str(c) for c in self._data.columns[len(REQUIRED_COLUMNS) :]]

    def __len__(self) -> int:
        return int(self._data.shape[0])

    def __iter__(self) -> Iterator[ContactRecord]:
        extras = self.extra_columns
        for row in self._data.itertuples(index=False, name=None):
            yield ContactRecord(
                chrom1=row[0],
                pos1=int(row[1]),
                chrom2=row[2],
                pos2=int(row[3]),
                score=float(row[4]),
                extra=dict(zip(extras, row[5:])),
            )

    @property
    def records(self) -> list[ContactRecord]:
        return list(self)

    def keys(self) -> list[tuple[str, int, str, int]]:
        return list(self._data.loc[:, list(KEY_COLUMNS)].itertuples(index=False, name=None))

    def to_dataframe(self) -> pd.DataFrame:
        return self._data.copy()

    def chroms(self) -> list[str]:
        names = pd.unique(pd.concat([self._data["chrom1"], self._data["chrom2"]], ignore_index=True))
        return sorted(str(c) for c in names)

    def filter_chroms(self, chroms: str | Iterable[str]) -> "ContactTable":
        """Keep records whose two ends both lie on one of `chroms`."""
        wanted = {chroms} if isinstance(chroms, str) else set(chroms)
        mask = self._data["chrom1"].isin(wanted) & self._data["chrom2"].isin(wanted)
        return ContactTable(self._data.loc[mask].reset_index(drop=True), self._meta)

    def summary(self) -> str:
        m = self._meta
        return "\n".join(
            [
                f"Sample: {m.sample or 'unspecified'}",
                f"Resolution: {m.resolution}",
                f"Type: {m.type.value}",
                f"Norm: {m.norm.value}",
                f"Reference genome: {m.genome or 'unspecified'}",
                f"Records: {len(self)}",
            ]
        )

    def __repr__(self) -> str:
        return (
            f"ContactTable(n={len(self)}, resolution={self.resolution}, "
            f"type={self.type.value!r}, norm={self.norm.value!r}, "
            f"genome={self.genome!r}, sample={self.sample!r})"
        )
