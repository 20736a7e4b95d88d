from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Absent:
    """Benign absence of an optional artifact (no thumbnail, no audio stream)."""

    reason: str

    def __bool__(self) -> bool:
        return False


Maybe = Union[T, Absent]


def is_absent(value: object) -> bool:
    return isinstance(value, Absent)


__all__ = ["Absent", "Maybe", "is_absent"]
