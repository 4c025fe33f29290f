from __future__ import annotations

from dataclasses import dataclass

from shapely.geometry.base import BaseGeometry


@dataclass(frozen=True)
class Extent:
    """
    Axis-aligned bounding box in layer coordinate space.

    Convention used throughout this repo:
    - xmin, ymin, xmax, ymax
    """

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    def normalized(self) -> "Extent":
        xmin = min(self.xmin, self.xmax)
        xmax = max(self.xmin, self.xmax)
        ymin = min(self.ymin, self.ymax)
        ymax = max(self.ymin, self.ymax)
        return Extent(xmin=xmin, ymin=ymin, xmax=xmax, ymax=ymax)

    def intersects(self, other: "Extent") -> bool:
        # Touching edges count as intersecting.
        a = self.normalized()
        b = other.normalized()
        return a.xmax >= b.xmin and a.xmin <= b.xmax and a.ymax >= b.ymin and a.ymin <= b.ymax

    def contains_point(self, x: float, y: float) -> bool:
        b = self.normalized()
        return b.xmin <= float(x) <= b.xmax and b.ymin <= float(y) <= b.ymax

    def to_dict(self) -> dict[str, float]:
        return {"xmin": self.xmin, "ymin": self.ymin, "xmax": self.xmax, "ymax": self.ymax}

    @classmethod
    def from_geometry(cls, geom: BaseGeometry) -> "Extent":
        """
        Bounding envelope of a shapely geometry.
        """
        if geom.is_empty:
            raise ValueError("Cannot take the envelope of an empty geometry")
        xmin, ymin, xmax, ymax = geom.bounds
        return cls(xmin=float(xmin), ymin=float(ymin), xmax=float(xmax), ymax=float(ymax))
