"""Mini README: Timeline argument helpers for the E57 loader.

The viewer forwards ``--time name=value`` and ``--sequence name=value``
options so that data from external loaders lands on the same timelines as
the rest of the recording. This module validates those strings without
touching the logging SDK, which keeps it trivially testable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

TIMESTAMP = "timestamp"
SEQUENCE = "sequence"


@dataclass(slots=True, frozen=True)
class TimeAssignment:
    """A single ``timeline=value`` pair supplied by the viewer."""

    timeline: str
    value: int
    kind: str


def _parse_entry(entry: str, kind: str) -> TimeAssignment:
    timeline, separator, raw_value = entry.partition("=")
    timeline = timeline.strip()
    if not separator or not timeline:
        option = "--time" if kind == TIMESTAMP else "--sequence"
        raise ValueError(f"Expected NAME=VALUE for {option}, got '{entry}'")
    try:
        value = int(raw_value.strip())
    except ValueError as error:
        raise ValueError(f"Timeline value must be an integer in '{entry}'") from error
    return TimeAssignment(timeline=timeline, value=value, kind=kind)


def parse_time_assignments(
    times: Optional[Iterable[str]] = None,
    sequences: Optional[Iterable[str]] = None,
) -> List[TimeAssignment]:
    """Validate viewer supplied timeline options.

    ``--time`` values are nanoseconds since the Unix epoch, ``--sequence``
    values are plain integers. Order is preserved: times first, then
    sequences.
    """

    assignments = [_parse_entry(entry, TIMESTAMP) for entry in times or ()]
    assignments.extend(_parse_entry(entry, SEQUENCE) for entry in sequences or ())
    return assignments
