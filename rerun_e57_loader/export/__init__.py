"""Mini README: Output side of the E57 loader.

Exposes the Rerun emitter and the helpers that set up the recording stream
the viewer reads from stdout.
"""

from .rerun_emitter import (
    RerunEmitter,
    resolve_application_id,
    resolve_recording_id,
    start_recording,
)

__all__ = [
    "RerunEmitter",
    "resolve_application_id",
    "resolve_recording_id",
    "start_recording",
]
