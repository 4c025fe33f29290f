from __future__ import annotations

from typing import Iterable


class RelationError(Exception):
    """
    Base class for errors raised by the tile layer relation.
    """


class UnsupportedKeyType(RelationError, ValueError):
    def __init__(self, class_name: str):
        super().__init__(f"Unsupported key type {class_name}")
        self.class_name = class_name


class UnsupportedValueType(RelationError, ValueError):
    def __init__(self, class_name: str):
        super().__init__(f"Unsupported tile type {class_name}")
        self.class_name = class_name


class UnknownColumn(RelationError, ValueError):
    def __init__(self, column: str, available: Iterable[str]):
        self.column = column
        self.available = tuple(available)
        super().__init__(
            f"Column {column!r} does not exist. Available columns: {', '.join(self.available)}"
        )
