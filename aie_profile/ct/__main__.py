"""Command line entry point.

Sample usage:
    # Write aie_profile.ct for device 0 using the ASM files under ./build
    python -m aie_profile.ct generate counters.json --search_root build

    # Convert the telemetry dumped by the executed CT script
    python -m aie_profile.ct to_perfetto aie_profile_counters.json trace.json
"""

import logging
from pathlib import Path

from jsonargparse import CLI
from rich import print

from aie_profile import init_logging
from aie_profile.ct.catalog import JsonCounterConfig
from aie_profile.ct.generator import CT_OUTPUT_FILENAME, CTConfig, CTFileGenerator
from aie_profile.ct.telemetry import load_profile_data, profile_to_perfetto
from aie_profile.ct.writer import TELEMETRY_FILENAME


def generate(
    counters: Path,
    device_id: int = 0,
    search_root: Path | None = None,
    output_dir: Path | None = None,
    output_filename: str = CT_OUTPUT_FILENAME,
    telemetry_filename: str = TELEMETRY_FILENAME,
    verbose: bool = False,
):
    """Generate a CT script from ASM files and a counter configuration

    Args:
        counters: JSON file with the device geometry and configured counters
        device_id: Device whose counters are instrumented
        search_root: Directory searched for aie_runtime_control<id>.asm files, defaults to cwd
        output_dir: Directory the CT file is written to, defaults to cwd
        output_filename: Name of the CT file
        telemetry_filename: JSON file the CT script writes when tracing ends
        verbose: Log every discovered file and counter
    """
    init_logging(logging.DEBUG if verbose else logging.INFO)
    store = JsonCounterConfig.from_file(counters)
    config = CTConfig(
        output_filename=output_filename,
        telemetry_filename=telemetry_filename,
        search_root=None if search_root is None else str(search_root),
        output_dir=None if output_dir is None else str(output_dir),
    )
    generator = CTFileGenerator(store, store, device_id=device_id, config=config)
    if not generator.generate():
        print("[bold red]CT file was not generated[/bold red] (run with --verbose True for details)")
        raise SystemExit(1)
    print(f"CT file written to: [green]{generator.output_path}[/green]")


def to_perfetto(profile_data: Path, trace_path: Path):
    """Convert CT telemetry JSON to a Perfetto trace

    Args:
        profile_data: JSON file written by the CT script's end block
        trace_path: Output Chrome trace JSON, viewable at https://ui.perfetto.dev/
    """
    data = load_profile_data(profile_data)
    trace = profile_to_perfetto(data, trace_path)
    print(f"Wrote {len(data.probes)} probe samples ({len(trace['traceEvents'])} events) to: {trace_path}")


def main():
    CLI([generate, to_perfetto])


if __name__ == "__main__":
    main()
