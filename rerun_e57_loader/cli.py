"""Mini README: Command line entry point invoked by the Rerun viewer.

The viewer discovers any executable named ``rerun-loader-*`` on ``PATH`` and
runs it for every file it is asked to open (command line, drag and drop, or
the file menu). The loader must exit with ``INCOMPATIBLE_EXIT_CODE`` (66)
for files it does not handle so the viewer can try its other loaders;
otherwise it streams the recording to stdout.

Options mirror the set the viewer passes to every external loader. Unknown
options from newer viewers are accepted and ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import rerun as rr
import typer
from pydantic import ValidationError

from .configuration import get_settings
from .export import RerunEmitter, resolve_application_id, resolve_recording_id, start_recording
from .ingestion import E57ReadError
from .loader import is_supported_file, load_e57
from .logging_utils import configure_root_logger, get_logger
from .utils import parse_time_assignments

LOGGER = get_logger(__name__)

# Renamed from EXTERNAL_DATA_LOADER_INCOMPATIBLE_EXIT_CODE in rerun-sdk 0.32.
INCOMPATIBLE_EXIT_CODE = getattr(rr, "EXTERNAL_IMPORTER_INCOMPATIBLE_EXIT_CODE", 66)

cli = typer.Typer(
    help="Load E57 point clouds and stream them to Rerun.",
    add_completion=False,
)


@cli.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def load(
    ctx: typer.Context,
    filepath: Path = typer.Argument(..., help="E57 file to load."),
    application_id: Optional[str] = typer.Option(
        None, help="Recommended ID for the application."
    ),
    opened_application_id: Optional[str] = typer.Option(
        None, help="ID of the application currently opened in the viewer."
    ),
    recording_id: Optional[str] = typer.Option(None, help="Recommended ID for the recording."),
    opened_recording_id: Optional[str] = typer.Option(
        None, help="ID of the recording currently opened in the viewer."
    ),
    entity_path_prefix: Optional[str] = typer.Option(
        None, help="Prefix for all entity paths."
    ),
    static: bool = typer.Option(False, "--static", help="Log all data statically."),
    time: Optional[List[str]] = typer.Option(
        None, help="Timestamp to log at, e.g. --time sim_time=1709203426 (nanoseconds)."
    ),
    sequence: Optional[List[str]] = typer.Option(
        None, help="Sequence to log at, e.g. --sequence sim_frame=42."
    ),
) -> None:
    """Stream the scans of an E57 file to the viewer over stdout."""

    if not is_supported_file(filepath):
        raise typer.Exit(code=INCOMPATIBLE_EXIT_CODE)

    try:
        settings = get_settings()
    except ValidationError as error:
        LOGGER.error("Invalid RERUN_E57_* configuration: %s", error)
        raise typer.Exit(code=1) from error
    configure_root_logger(settings.log_level)
    if ctx.args:
        LOGGER.debug("Ignoring unsupported arguments: %s", ctx.args)

    try:
        time_assignments = [] if static else parse_time_assignments(time, sequence)
    except ValueError as error:
        LOGGER.error("%s", error)
        raise typer.Exit(code=1) from error

    start_recording(
        resolve_application_id(
            application_id, opened_application_id, fallback=settings.application_id
        ),
        resolve_recording_id(recording_id, opened_recording_id),
    )
    emitter = RerunEmitter(
        entity_path_prefix=entity_path_prefix or settings.entity_path_prefix,
        chunk_size=settings.chunk_size,
        static=static,
        time_assignments=time_assignments,
    )
    try:
        load_e57(filepath, emitter, allowed_scans=settings.allowed_scans)
    except E57ReadError as error:
        LOGGER.error("%s", error)
        raise typer.Exit(code=1) from error


def main() -> None:
    """Console script entry point."""

    cli()


if __name__ == "__main__":
    main()
