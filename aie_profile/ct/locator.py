"""Discovery of aie_runtime_control<id>.asm files and their SAVE_TIMESTAMPS lines."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from aie_profile.ct.markers import match_marker, parse_artifact_name
from aie_profile.ct.types import ArtifactInfo, InstrumentationPoint

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


__all__ = [
    "LocateResult",
    "find_artifacts",
    "parse_instrumentation_points",
]


@dataclass
class LocateResult:
    """Outcome of an artifact search.

    Attributes:
        artifacts: Discovered files, sorted by group id. Empty when ``error`` is set.
        error: The traversal error, if the directory walk failed.
    """

    artifacts: list[ArtifactInfo] = field(default_factory=list)
    error: OSError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _walk_regular_files(root: Path):
    errors: list[OSError] = []
    for dirpath, _, filenames in os.walk(root, onerror=errors.append):
        for filename in filenames:
            path = os.path.join(dirpath, filename)
            if os.path.isfile(path):
                yield path
    if errors:
        raise errors[0]


def find_artifacts(
    root: str | Path | None = None, log: logging.Logger | None = None
) -> LocateResult:
    """Recursively search ``root`` for aie_runtime_control<id>.asm files.

    Args:
        root: Directory to search. Defaults to the current working directory.
        log: Logger to report to. Defaults to this module's logger.

    Returns:
        LocateResult with artifacts sorted by group id. Files sharing a group id
        (e.g. in different subdirectories) are all kept.
    """
    log = log or logger
    root = Path.cwd() if root is None else Path(root)
    if not root.is_dir():
        error = FileNotFoundError(f"No such directory: '{root}'")
        log.warning(f"Error searching for ASM files: {error}")
        return LocateResult(error=error)

    artifacts = []
    try:
        for path in _walk_regular_files(root):
            group_id = parse_artifact_name(os.path.basename(path))
            if group_id is None:
                continue
            info = ArtifactInfo(path=path, group_id=group_id)
            artifacts.append(info)
            log.debug(
                f"Found ASM file: {info.path} (id={info.group_id}, uc={info.controller_index}, "
                f"columns {info.column_start}-{info.column_end})"
            )
    except OSError as e:
        log.warning(f"Error searching for ASM files: {e}")
        return LocateResult(error=e)

    artifacts.sort(key=lambda a: (a.group_id, a.path))
    return LocateResult(artifacts=artifacts)


def parse_instrumentation_points(
    path: str | Path, log: logging.Logger | None = None
) -> list[InstrumentationPoint]:
    """Collect every SAVE_TIMESTAMPS line of an ASM file, in file order.

    An unreadable file is reported as a warning and yields no points.
    """
    log = log or logger
    points = []
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            for line_number, line in enumerate(f, start=1):
                matched, index = match_marker(line)
                if matched:
                    points.append(InstrumentationPoint(line_number=line_number, index=index))
    except OSError:
        log.warning(f"Unable to open ASM file: {path}")
        return []

    log.debug(f"Found {len(points)} SAVE_TIMESTAMPS in {path}")
    return points
