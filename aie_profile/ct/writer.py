"""Rendering of the CT instrumentation script.

The CT file is consumed by the trace-scripting engine, which executes the
``begin`` block once, each ``jprobe`` block whenever the micro-controller
reaches one of the listed ASM lines, and the ``end`` block on exit. Text
between ``@blockopen`` and ``@blockclose`` is run as Python by the engine.

``jprobe:<file>:uc<n>:line<...>`` is the engine's keyword for a probe that
fires on source lines of a micro-controller program. String values spliced
into the Python sub-blocks are written as JSON string literals, which are also
valid Python literals.

Layout of the generated file:

    begin { ts_start, init profile_data }
    jprobe:<asm file>:uc<n>:line<a>,<b>,... { ts, ctr_i = read_reg(addr), append probe }
    ...
    end { ts_end, dump profile_data to aie_profile_counters.json }
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from aie_profile.ct.catalog import format_address
from aie_profile.ct.types import ArtifactInfo, ResolvedCounter

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


__all__ = [
    "TELEMETRY_FILENAME",
    "render_ct_script",
    "write_ct_file",
]


TELEMETRY_FILENAME = "aie_profile_counters.json"

_INDENT = "    "


class _ScriptBuilder:
    def __init__(self):
        self._lines: list[str] = []

    def line(self, text: str = "") -> None:
        self._lines.append(text)

    def stmt(self, text: str) -> None:
        self._lines.append(_INDENT + text)

    def text(self) -> str:
        return "\n".join(self._lines) + "\n"


def _counter_metadata(counter: ResolvedCounter, log: logging.Logger) -> str:
    return (
        f'{{"column": {counter.column}, "row": {counter.row}, '
        f'"counter": {counter.counter_number}, "module": {json.dumps(counter.module)}, '
        f'"address": "{format_address(counter.address, log)}"}}'
    )


def _emit_begin(
    out: _ScriptBuilder, counters: Sequence[ResolvedCounter], log: logging.Logger
) -> None:
    out.line("begin")
    out.line("{")
    out.stmt("ts_start = timestamp32()")
    out.stmt('print("\\nAIE Profile tracing started\\n")')
    out.line("@blockopen")
    out.line("import json")
    out.line("import os")
    out.line()
    out.line("# Initialize data collection")
    out.line("profile_data = {")
    out.stmt('"start_timestamp": ts_start,')
    out.stmt('"counter_metadata": [')
    for i, counter in enumerate(counters):
        sep = "," if i < len(counters) - 1 else ""
        out.stmt(_INDENT + _counter_metadata(counter, log) + sep)
    out.stmt("],")
    out.stmt('"probes": []')
    out.line("}")
    out.line("@blockclose")
    out.line("}")
    out.line()


def _emit_probe(out: _ScriptBuilder, artifact: ArtifactInfo, log: logging.Logger) -> None:
    name = artifact.name
    lines = ",".join(str(p.line_number) for p in artifact.points)
    ctr_names = [f"ctr_{i}" for i in range(len(artifact.counters))]

    out.line(f"# Probes for {name} (columns {artifact.column_start}-{artifact.column_end})")
    out.line(f"jprobe:{name}:uc{artifact.controller_index}:line{lines}")
    out.line("{")
    out.stmt("ts = timestamp32()")
    for ctr, counter in zip(ctr_names, artifact.counters):
        out.stmt(f"{ctr} = read_reg({format_address(counter.address, log)})")
    out.stmt('print(f"Probe fired: ts={ts}")')
    out.line("@blockopen")
    out.line('profile_data["probes"].append({')
    out.stmt(f'"asm_file": "{name}",')
    out.stmt('"timestamp": ts,')
    out.stmt(f'"counters": [{", ".join(ctr_names)}]')
    out.line("})")
    out.line("@blockclose")
    out.line("}")
    out.line()


def _emit_end(out: _ScriptBuilder, telemetry_filename: str) -> None:
    out.line("end")
    out.line("{")
    out.stmt("ts_end = timestamp32()")
    out.stmt('print("\\nAIE Profile tracing ended\\n")')
    out.line("@blockopen")
    out.line('profile_data["end_timestamp"] = ts_end')
    out.line('profile_data["total_time"] = ts_end - profile_data["start_timestamp"]')
    out.line()
    out.line(f'output_path = os.path.join(os.getcwd(), {json.dumps(telemetry_filename)})')
    out.line('with open(output_path, "w") as f:')
    out.stmt("json.dump(profile_data, f, indent=2)")
    out.line('print(f"Profile data written to {output_path}")')
    out.line("@blockclose")
    out.line("}")


def render_ct_script(
    artifacts: Sequence[ArtifactInfo],
    counters: Sequence[ResolvedCounter],
    telemetry_filename: str = TELEMETRY_FILENAME,
    log: logging.Logger | None = None,
) -> str:
    """Render the full CT script.

    Artifacts without SAVE_TIMESTAMPS lines or without counters in their
    column range get no jprobe block.

    Args:
        artifacts: ASM files with ``points`` and ``counters`` already filled in.
        counters: Full counter catalog, written to the counter metadata table.
        telemetry_filename: JSON file the script writes when the trace ends.
        log: Logger for address width warnings. Defaults to this module's logger.
    """
    log = log or logger
    out = _ScriptBuilder()
    out.line("# Auto-generated CT file for AIE Profile counters")
    out.line("# Generated by aie_profile")
    out.line()

    _emit_begin(out, counters, log)
    for artifact in artifacts:
        if not artifact.points or not artifact.counters:
            continue
        _emit_probe(out, artifact, log)
    _emit_end(out, telemetry_filename)
    return out.text()


def write_ct_file(
    output_path: str | Path,
    artifacts: Sequence[ArtifactInfo],
    counters: Sequence[ResolvedCounter],
    telemetry_filename: str = TELEMETRY_FILENAME,
    log: logging.Logger | None = None,
) -> bool:
    """Render and write the CT script. Returns False if the file can't be created."""
    log = log or logger
    script = render_ct_script(artifacts, counters, telemetry_filename, log=log)
    created = False
    try:
        with open(output_path, "w") as f:
            created = True
            f.write(script)
    except OSError:
        log.warning(f"Unable to create CT file: {output_path}")
        # Don't leave a truncated script behind for the trace engine.
        if created:
            Path(output_path).unlink(missing_ok=True)
        return False

    log.info(f"Generated CT file: {output_path}")
    return True
