from pathlib import Path

import pytest

from aie_profile.ct import CounterRecord, DeviceGeometry, JsonCounterConfig


GEOMETRY = DeviceGeometry(column_shift=25, row_shift=20)


def write_asm(path: Path, lines: list[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def counter_config():
    return JsonCounterConfig(
        GEOMETRY,
        {
            0: [
                CounterRecord(column=1, row=2, counter_number=0, module="aie"),
                CounterRecord(column=2, row=1, counter_number=1, module="memory_tile"),
                CounterRecord(column=5, row=0, counter_number=3, module="interface_tile"),
            ]
        },
    )
