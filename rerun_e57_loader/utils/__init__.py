"""Mini README: Utility helper functions for the E57 loader.

Currently exports the parser for the timeline options forwarded by the
viewer.
"""

from .timeline import TimeAssignment, parse_time_assignments

__all__ = ["TimeAssignment", "parse_time_assignments"]
