"""Mini README: Read scans out of E57 point-cloud files.

Structure:
    * E57ReadError - raised when libe57 cannot open or decode the file.
    * ScanSummary - header level description of a single scan.
    * ScanPoints - decoded positions and per-point RGB colors.
    * point_colors - pick RGB, intensity or white for every point.
    * E57ScanReader - thin wrapper around ``pye57.E57``.

Parsing of the container itself (XML section, CRC checked binary pages,
compressed vectors) is left entirely to ``pye57`` and its ``libe57``
bindings. Scans are read through float64 buffers rather than
``E57.read_scan`` because the latter forces colors into ``uint8``, which
fails on 16-bit colors and truncates float colors. Each channel is then
normalised through the scan's ``colorLimits`` (or its point prototype when
the limits are absent). Points come back in world coordinates with the scan
pose applied and invalid cartesian samples removed.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np
import pye57

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

CARTESIAN_FIELDS = ("cartesianX", "cartesianY", "cartesianZ")
COLOR_FIELDS = ("colorRed", "colorGreen", "colorBlue")
INTENSITY_FIELD = "intensity"
CARTESIAN_INVALID_FIELD = "cartesianInvalidState"
COLOR_INVALID_FIELD = "isColorInvalid"
COLOR_LIMITS = "colorLimits"
WHITE = (255, 255, 255)

# Buffer dtypes handed to libe57; conversion is enabled so integer, scaled
# integer and float nodes all land in these.
FIELD_DTYPES = {
    **{field: "d" for field in CARTESIAN_FIELDS},
    **{field: "d" for field in COLOR_FIELDS},
    INTENSITY_FIELD: "d",
    CARTESIAN_INVALID_FIELD: "b",
    COLOR_INVALID_FIELD: "b",
}

ColorLimits = Dict[str, Tuple[float, float]]


class E57ReadError(RuntimeError):
    """The E57 container could not be opened or a scan could not be decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to read E57 file {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(slots=True)
class ScanSummary:
    """Header information for one scan inside the file."""

    index: int
    point_count: int
    has_cartesian: bool
    has_color: bool
    has_intensity: bool
    translation: Optional[Tuple[float, float, float]] = None


@dataclass(slots=True)
class ScanPoints:
    """Decoded scan geometry ready for logging."""

    positions: np.ndarray
    colors: np.ndarray

    def __len__(self) -> int:
        return int(self.positions.shape[0])


def _normalise_channel(values: np.ndarray, low: float, high: float) -> np.ndarray:
    """Map ``low..high`` onto ``0..255``; a degenerate range is full scale."""

    values = np.asarray(values, dtype=np.float64)
    if high > low:
        scaled = (values - low) / (high - low) * 255.0
    else:
        scaled = np.full(values.shape, 255.0)
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def _intensity_to_gray(intensity: np.ndarray) -> np.ndarray:
    """Map intensity values onto a grayscale ramp spanning the observed range."""

    values = np.asarray(intensity, dtype=np.float64)
    if values.size == 0:
        return np.zeros((0, 3), dtype=np.uint8)
    gray = _normalise_channel(values, float(values.min()), float(values.max()))
    return np.column_stack([gray, gray, gray])


def point_colors(
    data: Dict[str, np.ndarray],
    count: int,
    limits: Optional[ColorLimits] = None,
) -> np.ndarray:
    """Choose per-point colors: RGB fields, then intensity, then white.

    RGB channels are normalised through ``limits`` (field name to
    ``(minimum, maximum)``), defaulting to ``0..255``. Points flagged in
    ``isColorInvalid`` are painted white.
    """

    if all(field in data for field in COLOR_FIELDS):
        limits = limits or {}
        colors = np.column_stack(
            [_normalise_channel(data[field], *limits.get(field, (0.0, 255.0))) for field in COLOR_FIELDS]
        )
        if COLOR_INVALID_FIELD in data:
            colors[np.asarray(data[COLOR_INVALID_FIELD]) != 0] = WHITE
        return colors
    if INTENSITY_FIELD in data:
        return _intensity_to_gray(data[INTENSITY_FIELD])
    return np.tile(np.array(WHITE, dtype=np.uint8), (count, 1))


def _node_number(node) -> float:
    if hasattr(node, "scaledValue"):
        return float(node.scaledValue())
    return float(node.value())


def _node_range(node) -> Tuple[float, float]:
    if hasattr(node, "scaledMinimum"):
        return float(node.scaledMinimum()), float(node.scaledMaximum())
    return float(node.minimum()), float(node.maximum())


class E57ScanReader:
    """Open an E57 file and expose its scans in file order."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        LOGGER.debug("Opening E57 file %s", self.path)
        try:
            self._e57 = pye57.E57(str(self.path))
        except pye57.libe57.E57Exception as error:
            raise E57ReadError(self.path, str(error)) from error

    def __enter__(self) -> "E57ScanReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._e57.close()

    @property
    def scan_count(self) -> int:
        return int(self._e57.scan_count)

    def summary(self, index: int) -> ScanSummary:
        """Describe the scan at ``index`` from its header alone."""

        try:
            header = self._e57.get_header(index)
            fields = set(header.point_fields)
            translation = None
            if header.has_pose():
                x, y, z = (float(value) for value in header.translation)
                translation = (x, y, z)
            point_count = int(header.point_count)
        except pye57.libe57.E57Exception as error:
            raise E57ReadError(self.path, f"scan {index} header: {error}") from error
        return ScanSummary(
            index=index,
            point_count=point_count,
            has_cartesian=all(field in fields for field in CARTESIAN_FIELDS),
            has_color=all(field in fields for field in COLOR_FIELDS),
            has_intensity=INTENSITY_FIELD in fields,
            translation=translation,
        )

    def scans(self) -> Iterator[ScanSummary]:
        """Yield a summary for every scan in file order."""

        for index in range(self.scan_count):
            yield self.summary(index)

    def color_limits(self, header) -> ColorLimits:
        """Per-channel color range from ``colorLimits``, else the prototype."""

        limits: ColorLimits = {}
        declared = header.node[COLOR_LIMITS] if header.node.isDefined(COLOR_LIMITS) else None
        prototype = pye57.libe57.StructureNode(header.points.prototype())
        for field in COLOR_FIELDS:
            minimum, maximum = f"{field}Minimum", f"{field}Maximum"
            if declared is not None and declared.isDefined(minimum) and declared.isDefined(maximum):
                limits[field] = (_node_number(declared[minimum]), _node_number(declared[maximum]))
            else:
                limits[field] = _node_range(prototype[field])
        return limits

    def _read_fields(self, header, fields: List[str]) -> Dict[str, np.ndarray]:
        count = int(header.point_count)
        data: Dict[str, np.ndarray] = {}
        buffers = pye57.libe57.VectorSourceDestBuffer()
        for field in fields:
            array = np.empty(count, FIELD_DTYPES[field])
            data[field] = array
            buffers.append(
                pye57.libe57.SourceDestBuffer(self._e57.image_file, field, array, count, True, True)
            )
        header.points.reader(buffers).read()
        return data

    def read_points(self, summary: ScanSummary) -> ScanPoints:
        """Decode the positions and colors of a scan."""

        try:
            header = self._e57.get_header(summary.index)
            available = set(header.point_fields)
            fields = list(CARTESIAN_FIELDS)
            limits: Optional[ColorLimits] = None
            if summary.has_color:
                fields.extend(COLOR_FIELDS)
                limits = self.color_limits(header)
            if summary.has_intensity:
                fields.append(INTENSITY_FIELD)
            if summary.has_color and COLOR_INVALID_FIELD in available:
                fields.append(COLOR_INVALID_FIELD)
            if CARTESIAN_INVALID_FIELD in available:
                fields.append(CARTESIAN_INVALID_FIELD)
            data = self._read_fields(header, fields)
            rotation = np.asarray(header.rotation_matrix) if header.has_pose() else None
            translation = np.asarray(header.translation, dtype=np.float64)
        except pye57.libe57.E57Exception as error:
            raise E57ReadError(self.path, f"scan {summary.index} data: {error}") from error

        if CARTESIAN_INVALID_FIELD in data:
            valid = data.pop(CARTESIAN_INVALID_FIELD) == 0
            data = {field: values[valid] for field, values in data.items()}

        positions = np.column_stack([data[field] for field in CARTESIAN_FIELDS])
        if rotation is not None:
            positions = positions @ rotation.T + translation
        positions = positions.astype(np.float32)
        colors = point_colors(data, positions.shape[0], limits)
        LOGGER.debug("Decoded %s points from scan %s", positions.shape[0], summary.index)
        return ScanPoints(positions=positions, colors=colors)
