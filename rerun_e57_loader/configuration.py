"""Mini README: Environment driven configuration for the E57 loader.

Structure:
    * LoaderSettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.
    * parse_scan_selection - turns the scan allow-list into a set of indices.

Usage:
    The viewer launches the loader as a subprocess, so the only way to tune a
    run beyond the fixed command line is through ``RERUN_E57_*`` environment
    variables. ``RERUN_E57_DISPLAY_SCANS=0,2`` for instance restricts output
    to the first and third scans of the file.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Set

from pydantic import Field, validator
from pydantic_settings import BaseSettings


def parse_scan_selection(raw: Optional[str]) -> Optional[Set[int]]:
    """Parse a comma separated list of scan indices.

    ``None`` means no filter was configured and every scan is allowed. Tokens
    that are not non-negative integers are dropped, so ``"0, x, 2"`` selects
    scans 0 and 2 while ``"x"`` selects nothing at all.
    """

    if raw is None:
        return None
    selection: Set[int] = set()
    for token in raw.split(","):
        digits = token.strip()
        if digits.startswith("+"):
            digits = digits[1:]
        if digits.isascii() and digits.isdigit():
            selection.add(int(digits))
    return selection


class LoaderSettings(BaseSettings):
    """Runtime configuration for the E57 loader."""

    display_scans: Optional[str] = Field(
        None,
        description=(
            "Comma separated scan indices to emit. Leave unset to emit every scan"
            " in the file."
        ),
    )
    chunk_size: int = Field(
        1_000_000,
        description="Maximum number of points logged per entity.",
        ge=1,
    )
    entity_path_prefix: str = Field(
        "e57_pointcloud",
        description="Entity path root used when the viewer does not provide one.",
    )
    application_id: str = Field(
        "rerun_e57_loader",
        description="Application id used when the viewer does not provide one.",
    )
    log_level: str = Field(
        "INFO",
        description="Level name for diagnostics written to stderr.",
    )

    class Config:
        env_prefix = "RERUN_E57_"
        case_sensitive = False

    @validator("log_level", pre=True)
    def _normalise_level(cls, value: str) -> str:
        """Accept any casing of a standard logging level name."""

        name = str(value).strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"Unknown log level '{value}'")
        return name

    @property
    def allowed_scans(self) -> Optional[Set[int]]:
        """Scan indices selected through ``display_scans``."""

        return parse_scan_selection(self.display_scans)


@lru_cache()
def get_settings() -> LoaderSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return LoaderSettings()
