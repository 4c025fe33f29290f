from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class Tile:
    """
    Opaque raster value stored under a key.

    Cells are a 2-D numpy array of shape (rows, cols); `cell_type` is the numpy dtype name.
    """

    cells: np.ndarray

    def __post_init__(self) -> None:
        if self.cells.ndim != 2:
            raise ValueError(f"Tile cells must be 2-D, got shape {self.cells.shape}")

    @property
    def cols(self) -> int:
        return int(self.cells.shape[1])

    @property
    def rows(self) -> int:
        return int(self.cells.shape[0])

    @property
    def cell_type(self) -> str:
        return str(self.cells.dtype.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tile):
            return NotImplemented
        return self.cell_type == other.cell_type and bool(np.array_equal(self.cells, other.cells))

    def __hash__(self) -> int:
        return hash((self.cell_type, self.cells.shape, self.cells.tobytes()))

    def __repr__(self) -> str:
        return f"Tile({self.cols}x{self.rows}, {self.cell_type})"

    def to_bytes(self) -> bytes:
        return np.ascontiguousarray(self.cells).tobytes()

    @classmethod
    def from_bytes(cls, data: bytes, *, cell_type: str, cols: int, rows: int) -> "Tile":
        arr = np.frombuffer(bytes(data), dtype=np.dtype(cell_type)).reshape(int(rows), int(cols))
        return cls(cells=arr.copy())

    @classmethod
    def filled(cls, value: float, *, cols: int, rows: int, cell_type: str = "float64") -> "Tile":
        return cls(cells=np.full((int(rows), int(cols)), value, dtype=np.dtype(cell_type)))
