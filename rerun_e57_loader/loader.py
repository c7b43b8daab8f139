"""Mini README: The load loop tying the E57 reader to the Rerun emitter.

Structure:
    * LoadReport - what was emitted and why other scans were skipped.
    * is_supported_file - cheap check run before anything is opened.
    * load_e57 - iterate scans in file order and emit the selected ones.

The emitter is passed in so the loop can be exercised without a live
recording stream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Set

from .ingestion.e57_reader import E57ScanReader, ScanPoints, ScanSummary
from .logging_utils import get_logger

LOGGER = get_logger(__name__)

E57_SUFFIX = ".e57"


class ScanEmitter(Protocol):
    def begin_scan(self, index: int) -> None: ...

    def emit_scan_position(self, summary: ScanSummary) -> bool: ...

    def emit_points(self, index: int, points: ScanPoints) -> int: ...


@dataclass(slots=True)
class LoadReport:
    """Outcome of a single load."""

    emitted_scans: List[int] = field(default_factory=list)
    skipped_scans: Dict[int, str] = field(default_factory=dict)
    points_emitted: int = 0


def is_supported_file(path: Path) -> bool:
    """True for existing regular files with an ``.e57`` extension, any case."""

    return path.is_file() and path.suffix.lower() == E57_SUFFIX


def load_e57(
    path: Path,
    emitter: ScanEmitter,
    *,
    allowed_scans: Optional[Set[int]] = None,
) -> LoadReport:
    """Emit every selected scan of ``path`` through ``emitter``.

    ``allowed_scans`` of ``None`` selects every scan. Scans without cartesian
    coordinates or without records are skipped regardless of the selection.
    """

    report = LoadReport()
    with E57ScanReader(path) as reader:
        LOGGER.info("Loading %s (%s scan(s))", path, reader.scan_count)
        for summary in reader.scans():
            index = summary.index
            if not summary.has_cartesian:
                LOGGER.info("Point cloud #%s has no XYZ data, skipping...", index)
                report.skipped_scans[index] = "no cartesian coordinates"
                continue
            if summary.point_count < 1:
                LOGGER.info("Point cloud #%s is empty, skipping...", index)
                report.skipped_scans[index] = "empty"
                continue
            if allowed_scans is not None and index not in allowed_scans:
                LOGGER.debug("Point cloud #%s not selected", index)
                report.skipped_scans[index] = "not selected"
                continue

            emitter.begin_scan(index)
            emitter.emit_scan_position(summary)
            points = reader.read_points(summary)
            emitter.emit_points(index, points)
            report.emitted_scans.append(index)
            report.points_emitted += len(points)

    LOGGER.info(
        "Emitted %s scan(s) with %s point(s) from %s",
        len(report.emitted_scans),
        report.points_emitted,
        path,
    )
    return report
