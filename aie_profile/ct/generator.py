"""End-to-end CT file generation for one device.

Usage:
    store = JsonCounterConfig.from_file("counters.json")
    generator = CTFileGenerator(store, store, device_id=0)
    if generator.generate():
        print(generator.output_path)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from aie_profile.ct.catalog import (
    CounterStore,
    MetadataProvider,
    filter_counters_by_column,
    get_configured_counters,
)
from aie_profile.ct.locator import find_artifacts, parse_instrumentation_points
from aie_profile.ct.writer import TELEMETRY_FILENAME, write_ct_file

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


__all__ = [
    "CT_OUTPUT_FILENAME",
    "CTConfig",
    "CTFileGenerator",
]


CT_OUTPUT_FILENAME = "aie_profile.ct"


@dataclass
class CTConfig:
    """Where to look for ASM files and where to put the generated script.

    Attributes:
        output_filename: Name of the CT file.
        telemetry_filename: JSON file the CT script writes when tracing ends.
        search_root: Directory searched recursively for ASM files. None means cwd.
        output_dir: Directory the CT file is written to. None means cwd.
    """

    output_filename: str = CT_OUTPUT_FILENAME
    telemetry_filename: str = TELEMETRY_FILENAME
    search_root: str | None = None
    output_dir: str | None = None


class CTFileGenerator:
    def __init__(
        self,
        store: CounterStore,
        metadata: MetadataProvider,
        device_id: int = 0,
        config: CTConfig | None = None,
        log: logging.Logger | None = None,
    ):
        self.store = store
        self.device_id = device_id
        self.config = config or CTConfig()
        self.log = log or logger
        self.geometry = metadata.configured_geometry()

    @property
    def output_path(self) -> Path:
        output_dir = Path.cwd() if self.config.output_dir is None else Path(self.config.output_dir)
        return output_dir / self.config.output_filename

    def generate(self) -> bool:
        """Generate the CT file. Returns True if a file was written."""
        artifacts = find_artifacts(self.config.search_root, log=self.log).artifacts
        if not artifacts:
            self.log.debug(
                "No aie_runtime_control<id>.asm files found. CT file will not be generated."
            )
            return False

        counters = get_configured_counters(self.store, self.device_id, self.geometry, log=self.log)
        if not counters:
            self.log.debug("No AIE counters configured. CT file will not be generated.")
            return False

        has_points = False
        for artifact in artifacts:
            artifact.points = parse_instrumentation_points(artifact.path, log=self.log)
            if artifact.points:
                has_points = True
            artifact.counters = filter_counters_by_column(
                counters, artifact.column_start, artifact.column_end
            )

        if not has_points:
            self.log.debug(
                "No SAVE_TIMESTAMPS instructions found in ASM files. CT file will not be generated."
            )
            return False

        return write_ct_file(
            self.output_path,
            artifacts,
            counters,
            telemetry_filename=self.config.telemetry_filename,
            log=self.log,
        )
