from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TypeAlias, Union


@dataclass(frozen=True, order=True)
class SpatialKey:
    col: int
    row: int

    def to_dict(self) -> dict[str, int]:
        return {"col": self.col, "row": self.row}


@dataclass(frozen=True, order=True)
class TemporalKey:
    # Epoch milliseconds (UTC).
    instant: int

    @property
    def time(self) -> datetime:
        return datetime.fromtimestamp(self.instant / 1000.0, tz=timezone.utc)

    def to_dict(self) -> dict[str, int]:
        return {"instant": self.instant}


@dataclass(frozen=True, order=True)
class SpaceTimeKey:
    col: int
    row: int
    instant: int

    @property
    def spatial_key(self) -> SpatialKey:
        return SpatialKey(col=self.col, row=self.row)

    @property
    def temporal_key(self) -> TemporalKey:
        return TemporalKey(instant=self.instant)

    def to_dict(self) -> dict[str, int]:
        return {"col": self.col, "row": self.row, "instant": self.instant}


LayerKey: TypeAlias = Union[SpatialKey, SpaceTimeKey]
