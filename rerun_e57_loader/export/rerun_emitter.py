"""Mini README: Stream decoded scans into a Rerun recording.

Structure:
    * resolve_application_id / resolve_recording_id - pick identities from the
      viewer supplied options.
    * start_recording - initialise the SDK and route the stream to stdout.
    * RerunEmitter - logs scan markers and chunked point clouds.

Entity layout, per scan ``i``::

    <prefix>/scan_<i>/point      red marker at the scan origin
    <prefix>/scan_<i>/chunk_<k>  up to ``chunk_size`` points each

Large scans are split into chunks because a single multi-million point
archetype is slow to ingest on the viewer side.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import rerun as rr

from ..ingestion.e57_reader import ScanPoints, ScanSummary
from ..logging_utils import get_logger
from ..utils.timeline import TIMESTAMP, TimeAssignment

LOGGER = get_logger(__name__)

DEFAULT_TIMELINE = "default"
MARKER_COLOR = (255, 0, 0)
MARKER_RADIUS = 0.15


def resolve_application_id(
    application_id: Optional[str],
    opened_application_id: Optional[str],
    *,
    fallback: str,
) -> str:
    """An already opened application takes precedence over the suggested one."""

    return opened_application_id or application_id or fallback


def resolve_recording_id(
    recording_id: Optional[str], opened_recording_id: Optional[str]
) -> Optional[str]:
    """A suggested recording id takes precedence over the opened one."""

    return recording_id or opened_recording_id


def start_recording(application_id: str, recording_id: Optional[str] = None) -> None:
    """Initialise the global recording and stream it to stdout for the viewer."""

    LOGGER.debug("Starting recording app=%s recording=%s", application_id, recording_id)
    rr.init(application_id, recording_id=recording_id, spawn=False)
    rr.stdout()


class RerunEmitter:
    """Log scans to the active Rerun recording."""

    def __init__(
        self,
        *,
        entity_path_prefix: str,
        chunk_size: int,
        static: bool = False,
        time_assignments: Sequence[TimeAssignment] = (),
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.entity_path_prefix = entity_path_prefix.rstrip("/")
        self.chunk_size = chunk_size
        self.static = static
        self.time_assignments = list(time_assignments)

    def scan_path(self, index: int) -> str:
        return f"{self.entity_path_prefix}/scan_{index}"

    def begin_scan(self, index: int) -> None:
        """Position the recording on the timelines requested by the viewer."""

        if self.static:
            return
        if not self.time_assignments:
            rr.set_time(DEFAULT_TIMELINE, duration=0.0)
            return
        for assignment in self.time_assignments:
            if assignment.kind == TIMESTAMP:
                rr.set_time(assignment.timeline, timestamp=np.datetime64(assignment.value, "ns"))
            else:
                rr.set_time(assignment.timeline, sequence=assignment.value)

    def emit_scan_position(self, summary: ScanSummary) -> bool:
        """Log a labelled marker at the scan origin; returns False when unposed."""

        if summary.translation is None:
            return False
        rr.log(
            f"{self.scan_path(summary.index)}/point",
            rr.Points3D(
                [summary.translation],
                colors=[MARKER_COLOR],
                radii=[MARKER_RADIUS],
                labels=[f"Scan {summary.index}"],
            ),
            static=self.static,
        )
        return True

    def emit_points(self, index: int, points: ScanPoints) -> int:
        """Log the scan in ``chunk_size`` slices and return the number of chunks."""

        chunk_count = 0
        for start in range(0, len(points), self.chunk_size):
            stop = start + self.chunk_size
            rr.log(
                f"{self.scan_path(index)}/chunk_{chunk_count}",
                rr.Points3D(points.positions[start:stop], colors=points.colors[start:stop]),
                static=self.static,
            )
            chunk_count += 1
        LOGGER.debug("Scan %s logged as %s chunk(s)", index, chunk_count)
        return chunk_count
