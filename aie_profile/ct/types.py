"""Data types shared by the CT file pipeline.

An AIE array is laid out as columns x rows of tiles. Each generated
``aie_runtime_control<id>.asm`` drives one micro-controller that owns a
4-column slice of the array:

    group_id 0 -> uc0,  columns 0-3
    group_id 1 -> uc4,  columns 4-7
    group_id 2 -> uc8,  columns 8-11
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum


__all__ = [
    "COLUMNS_PER_GROUP",
    "ModuleKind",
    "DeviceGeometry",
    "CounterRecord",
    "ResolvedCounter",
    "InstrumentationPoint",
    "ArtifactInfo",
]


COLUMNS_PER_GROUP = 4


class ModuleKind(str, Enum):
    """Functional block of a tile that owns a performance counter."""

    CORE = "aie"
    MEMORY = "aie_memory"
    MEMORY_TILE = "memory_tile"
    INTERFACE_TILE = "interface_tile"


@dataclass(frozen=True)
class DeviceGeometry:
    """Bit positions of the column and row fields in a tile address."""

    column_shift: int
    row_shift: int

    def __post_init__(self):
        if self.column_shift < 0 or self.row_shift < 0:
            raise ValueError(f"Shifts must be non-negative, got {self}")


@dataclass(frozen=True)
class CounterRecord:
    """A configured counter as reported by a counter store.

    Attributes:
        column: Tile column.
        row: Tile row.
        counter_number: Ordinal of the counter within its module.
        module: Module kind string, e.g. "aie" or "memory_tile".
    """

    column: int
    row: int
    counter_number: int
    module: str

    def __post_init__(self):
        if min(self.column, self.row, self.counter_number) < 0:
            raise ValueError(f"Tile coordinates and counter number are unsigned, got {self}")


@dataclass(frozen=True)
class ResolvedCounter:
    """A configured counter together with its physical register address."""

    column: int
    row: int
    counter_number: int
    module: str
    address: int


@dataclass(frozen=True)
class InstrumentationPoint:
    """A SAVE_TIMESTAMPS line in an ASM file.

    Attributes:
        line_number: 1-based line in the source file.
        index: Optional numeric argument of the marker, None when absent.
    """

    line_number: int
    index: int | None = None


@dataclass
class ArtifactInfo:
    """One discovered aie_runtime_control<id>.asm file."""

    path: str
    group_id: int
    points: list[InstrumentationPoint] = field(default_factory=list)
    counters: list[ResolvedCounter] = field(default_factory=list)

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def controller_index(self) -> int:
        return COLUMNS_PER_GROUP * self.group_id

    @property
    def column_start(self) -> int:
        return COLUMNS_PER_GROUP * self.group_id

    @property
    def column_end(self) -> int:
        return self.column_start + COLUMNS_PER_GROUP - 1
