"""Counter catalog, register address resolution and per-group filtering.

Tile address layout (AIE-ML / AIE2PS):

    tile_address = (column << column_shift) | (row << row_shift)
    address      = tile_address + module_base_offset + 4 * counter_number

The module base offset is the address of Performance_Counter0 in that module.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol

from aie_profile.ct.types import CounterRecord, DeviceGeometry, ModuleKind, ResolvedCounter

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


__all__ = [
    "MODULE_BASE_OFFSETS",
    "ADDRESS_HEX_DIGITS",
    "CTConfigError",
    "CounterStore",
    "MetadataProvider",
    "InMemoryCounterStore",
    "JsonCounterConfig",
    "module_base_offset",
    "counter_address",
    "format_address",
    "resolve_counter",
    "get_configured_counters",
    "filter_counters_by_column",
]


MODULE_BASE_OFFSETS: dict[str, int] = {
    ModuleKind.CORE.value: 0x00031520,
    ModuleKind.MEMORY.value: 0x00011020,
    ModuleKind.MEMORY_TILE.value: 0x00091020,
    ModuleKind.INTERFACE_TILE.value: 0x00031020,
}

# Each counter register is 32 bits wide.
COUNTER_STRIDE = 4

ADDRESS_HEX_DIGITS = 10


class CTConfigError(ValueError):
    """Raised when a counter configuration or telemetry file is malformed."""


class CounterStore(Protocol):
    def counter_count(self, device_id: int) -> int: ...

    def counter_at(self, device_id: int, ordinal: int) -> CounterRecord | None: ...


class MetadataProvider(Protocol):
    def configured_geometry(self) -> DeviceGeometry: ...


class InMemoryCounterStore:
    """Counter store backed by a dict of device id -> counter records."""

    def __init__(self, counters: Mapping[int, Iterable[CounterRecord]] | None = None):
        self._counters = {device_id: list(recs) for device_id, recs in (counters or {}).items()}

    def add(self, device_id: int, record: CounterRecord) -> None:
        self._counters.setdefault(device_id, []).append(record)

    def counter_count(self, device_id: int) -> int:
        return len(self._counters.get(device_id, []))

    def counter_at(self, device_id: int, ordinal: int) -> CounterRecord | None:
        records = self._counters.get(device_id, [])
        if 0 <= ordinal < len(records):
            return records[ordinal]
        return None


class JsonCounterConfig(InMemoryCounterStore):
    """Counter store and metadata provider loaded from a JSON file.

    Expected layout:

        {
          "geometry": {"column_shift": 25, "row_shift": 20},
          "devices": {
            "0": [{"column": 0, "row": 2, "counter_number": 0, "module": "aie"}]
          }
        }
    """

    def __init__(
        self,
        geometry: DeviceGeometry,
        counters: Mapping[int, Iterable[CounterRecord]] | None = None,
    ):
        super().__init__(counters)
        self._geometry = geometry

    def configured_geometry(self) -> DeviceGeometry:
        return self._geometry

    @classmethod
    def from_dict(cls, data: dict) -> JsonCounterConfig:
        try:
            geo = data["geometry"]
            geometry = DeviceGeometry(
                column_shift=int(geo["column_shift"]), row_shift=int(geo["row_shift"])
            )
            counters = {
                int(device_id): [
                    CounterRecord(
                        column=int(c["column"]),
                        row=int(c["row"]),
                        counter_number=int(c["counter_number"]),
                        module=str(c["module"]),
                    )
                    for c in entries
                ]
                for device_id, entries in data.get("devices", {}).items()
            }
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CTConfigError(f"Invalid counter configuration: {e!r}") from e
        return cls(geometry, counters)

    @classmethod
    def from_file(cls, path: str | Path) -> JsonCounterConfig:
        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise CTConfigError(f"{path} is not valid JSON: {e}") from e
        return cls.from_dict(data)


def module_base_offset(module: str) -> int:
    """Base offset for a module kind, falling back to the core module."""
    return MODULE_BASE_OFFSETS.get(module, MODULE_BASE_OFFSETS[ModuleKind.CORE.value])


def counter_address(
    column: int, row: int, counter_number: int, module: str, geometry: DeviceGeometry
) -> int:
    tile_address = (column << geometry.column_shift) | (row << geometry.row_shift)
    return tile_address + module_base_offset(module) + counter_number * COUNTER_STRIDE


def format_address(address: int, log: logging.Logger | None = None) -> str:
    """Render an address as ``0x`` plus 10 zero-padded lowercase hex digits.

    Addresses of 2**40 and above print with more digits; they are not truncated.
    """
    if address >> (4 * ADDRESS_HEX_DIGITS):
        (log or logger).warning(
            f"Address {address:#x} does not fit in {ADDRESS_HEX_DIGITS} hex digits"
        )
    return f"0x{address:0{ADDRESS_HEX_DIGITS}x}"


def resolve_counter(record: CounterRecord, geometry: DeviceGeometry) -> ResolvedCounter:
    return ResolvedCounter(
        column=record.column,
        row=record.row,
        counter_number=record.counter_number,
        module=record.module,
        address=counter_address(
            record.column, record.row, record.counter_number, record.module, geometry
        ),
    )


def get_configured_counters(
    store: CounterStore,
    device_id: int,
    geometry: DeviceGeometry,
    log: logging.Logger | None = None,
) -> list[ResolvedCounter]:
    """Fetch every configured counter of a device and resolve its address.

    Ordinals the store cannot return are skipped.
    """
    log = log or logger
    counters = []
    for i in range(store.counter_count(device_id)):
        record = store.counter_at(device_id, i)
        if record is None:
            continue
        counters.append(resolve_counter(record, geometry))

    log.debug(f"Retrieved {len(counters)} configured AIE counters")
    return counters


def filter_counters_by_column(
    counters: Iterable[ResolvedCounter], column_start: int, column_end: int
) -> list[ResolvedCounter]:
    """Counters whose column lies in [column_start, column_end], in catalog order."""
    return [c for c in counters if column_start <= c.column <= column_end]
