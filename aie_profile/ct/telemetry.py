"""Post-processing of the telemetry written by an executed CT script.

The ``end`` block of a CT script dumps ``aie_profile_counters.json``:

    {
      "start_timestamp": 1200,
      "counter_metadata": [{"column": 0, "row": 2, "counter": 0, "module": "aie", "address": "0x..."}],
      "probes": [{"asm_file": "aie_runtime_control0.asm", "timestamp": 1350, "counters": [17]}],
      "end_timestamp": 2400,
      "total_time": 1200
    }

``profile_to_perfetto`` turns that into a Chrome trace viewable at
https://ui.perfetto.dev/ : one process per ASM file, an instant event per probe
firing and a counter track per read register.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from aie_profile.ct.catalog import CTConfigError
from aie_profile.ct.types import COLUMNS_PER_GROUP
from aie_profile.ct.markers import parse_artifact_name


__all__ = [
    "CounterMetadata",
    "ProbeSample",
    "ProfileData",
    "load_profile_data",
    "profile_to_perfetto",
]


@dataclass
class CounterMetadata:
    column: int
    row: int
    counter: int
    module: str
    address: str

    @property
    def label(self) -> str:
        return f"{self.module}[{self.column},{self.row}] ctr{self.counter}"


@dataclass
class ProbeSample:
    """One firing of a jprobe block.

    Attributes:
        asm_file: Base name of the ASM file the probe belongs to.
        timestamp: Raw timestamp32() value at the probe.
        counters: Counter values, in the order of the ASM file's ctr_<i> reads.
    """

    asm_file: str
    timestamp: int
    counters: list[int] = field(default_factory=list)


@dataclass
class ProfileData:
    start_timestamp: int
    counter_metadata: list[CounterMetadata]
    probes: list[ProbeSample]
    end_timestamp: int | None = None
    total_time: int | None = None

    def counters_for(self, asm_file: str) -> list[CounterMetadata]:
        """Counter metadata in ctr_<i> order for the given ASM file.

        The CT script reads, per ASM file, the counters of its 4-column group
        in catalog order, so the mapping is recovered from the file name.
        """
        group_id = parse_artifact_name(asm_file)
        if group_id is None:
            return []
        start = COLUMNS_PER_GROUP * group_id
        return [m for m in self.counter_metadata if start <= m.column < start + COLUMNS_PER_GROUP]


def load_profile_data(path: str | Path) -> ProfileData:
    with open(path) as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise CTConfigError(f"{path} is not valid JSON: {e}") from e

    try:
        return ProfileData(
            start_timestamp=int(raw["start_timestamp"]),
            counter_metadata=[CounterMetadata(**m) for m in raw.get("counter_metadata", [])],
            probes=[
                ProbeSample(
                    asm_file=p["asm_file"],
                    timestamp=int(p["timestamp"]),
                    counters=[int(v) for v in p.get("counters", [])],
                )
                for p in raw.get("probes", [])
            ],
            end_timestamp=raw.get("end_timestamp"),
            total_time=raw.get("total_time"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise CTConfigError(f"Invalid profile data in {path}: {e!r}") from e


def profile_to_perfetto(data: ProfileData, trace_path: str | Path | None = None) -> dict:
    """Export probe samples to Perfetto-compatible Chrome trace JSON.

    Timestamps are taken relative to ``start_timestamp`` and written as-is
    (timestamp32() ticks) in the ``ts`` field.

    Args:
        data: Loaded profile data.
        trace_path: Path to write the trace JSON file. If None, just returns the trace dict.

    Returns:
        The trace dict.
    """
    asm_files = sorted({p.asm_file for p in data.probes})
    pid_of = {name: pid for pid, name in enumerate(asm_files)}

    trace_events = []
    for name, pid in pid_of.items():
        trace_events.append(
            {"name": "process_name", "ph": "M", "pid": pid, "args": {"name": name}}
        )

    for probe in data.probes:
        pid = pid_of[probe.asm_file]
        ts = probe.timestamp - data.start_timestamp
        trace_events.append(
            {
                "name": "probe",
                "cat": "aie_profile",
                "ph": "i",
                "s": "p",
                "ts": ts,
                "pid": pid,
                "tid": 0,
            }
        )
        metadata = data.counters_for(probe.asm_file)
        for i, value in enumerate(probe.counters):
            label = metadata[i].label if i < len(metadata) else f"ctr_{i}"
            trace_events.append(
                {
                    "name": label,
                    "cat": "aie_profile",
                    "ph": "C",
                    "ts": ts,
                    "pid": pid,
                    "args": {"value": value},
                }
            )

    trace = {"traceEvents": trace_events}
    if data.end_timestamp is not None:
        trace["otherData"] = {
            "start_timestamp": data.start_timestamp,
            "end_timestamp": data.end_timestamp,
            "total_time": data.total_time,
        }

    if trace_path is not None:
        with open(trace_path, "w") as f:
            json.dump(trace, f, indent=2)

    return trace
