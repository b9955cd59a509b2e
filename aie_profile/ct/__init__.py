"""CT instrumentation script generation for AIE profile counters.

Correlates the per-group ``aie_runtime_control<id>.asm`` files produced for an
AIE array with the configured performance counters, and writes a CT script
that samples those counters at every SAVE_TIMESTAMPS line.

Quick Start:
    from aie_profile.ct import CTFileGenerator, JsonCounterConfig

    config = JsonCounterConfig.from_file("counters.json")
    if CTFileGenerator(config, config, device_id=0).generate():
        ...  # aie_profile.ct written to the current directory

After the trace engine has run the script:
    from aie_profile.ct import load_profile_data, profile_to_perfetto

    profile_to_perfetto(load_profile_data("aie_profile_counters.json"), "trace.json")
"""

from aie_profile.ct.types import (
    ArtifactInfo,
    CounterRecord,
    DeviceGeometry,
    InstrumentationPoint,
    ModuleKind,
    ResolvedCounter,
)

from aie_profile.ct.catalog import (
    MODULE_BASE_OFFSETS,
    CTConfigError,
    CounterStore,
    InMemoryCounterStore,
    JsonCounterConfig,
    MetadataProvider,
    counter_address,
    filter_counters_by_column,
    format_address,
    get_configured_counters,
    module_base_offset,
)

from aie_profile.ct.locator import LocateResult, find_artifacts, parse_instrumentation_points
from aie_profile.ct.writer import render_ct_script, write_ct_file
from aie_profile.ct.generator import CT_OUTPUT_FILENAME, CTConfig, CTFileGenerator
from aie_profile.ct.telemetry import ProfileData, load_profile_data, profile_to_perfetto

__all__ = [
    # Data model
    "ArtifactInfo",
    "CounterRecord",
    "DeviceGeometry",
    "InstrumentationPoint",
    "ModuleKind",
    "ResolvedCounter",
    # Counters
    "MODULE_BASE_OFFSETS",
    "CTConfigError",
    "CounterStore",
    "InMemoryCounterStore",
    "JsonCounterConfig",
    "MetadataProvider",
    "counter_address",
    "filter_counters_by_column",
    "format_address",
    "get_configured_counters",
    "module_base_offset",
    # ASM files
    "LocateResult",
    "find_artifacts",
    "parse_instrumentation_points",
    # Output
    "render_ct_script",
    "write_ct_file",
    "CT_OUTPUT_FILENAME",
    "CTConfig",
    "CTFileGenerator",
    # Telemetry
    "ProfileData",
    "load_profile_data",
    "profile_to_perfetto",
]
