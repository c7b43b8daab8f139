"""Mini README: Shared fixtures for the loader test-suite.

Structure:
    * FakeHeader / FakeE57 - stand-ins for ``pye57`` objects built from plain
      dictionaries of numpy arrays.
    * FakeStructure / FakeBuffer / FakeReader - the slice of ``libe57`` the
      reader touches: node lookups and buffered compressed-vector reads.
    * make_scan - builds an in-memory scan dictionary.
    * fake_e57 - installs a FakeE57 factory in place of ``pye57.E57``
      and the fake buffers in place of their ``libe57`` counterparts.
    * clean_settings - isolates tests from ``RERUN_E57_*`` variables and the
      settings cache.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import numpy as np
import pye57
import pytest

from rerun_e57_loader.configuration import get_settings


class FakeStructure(dict):
    """Dictionary standing in for a libe57 ``StructureNode``."""

    def isDefined(self, path: str) -> bool:  # noqa: N802 - mirrors libe57
        return path in self


class FakeValue:
    def __init__(self, value: float) -> None:
        self._value = value

    def value(self) -> float:
        return self._value


class FakeRange:
    def __init__(self, minimum: float, maximum: float) -> None:
        self._minimum, self._maximum = minimum, maximum

    def minimum(self) -> float:
        return self._minimum

    def maximum(self) -> float:
        return self._maximum


class FakeBuffer:
    def __init__(self, image_file, name, array, capacity, do_conversion, do_scaling) -> None:
        self.name = name
        self.array = array


class FakeReader:
    def __init__(self, data: Dict[str, np.ndarray], buffers: List[FakeBuffer]) -> None:
        self._data = data
        self._buffers = buffers

    def read(self) -> int:
        for buffer in self._buffers:
            buffer.array[:] = self._data[buffer.name]
        return len(self._buffers[0].array) if self._buffers else 0


class FakePoints:
    def __init__(self, data: Dict[str, np.ndarray], prototype_range: Tuple[float, float], on_read) -> None:
        self._data = data
        self._prototype = FakeStructure({field: FakeRange(*prototype_range) for field in data})
        self._on_read = on_read

    def prototype(self) -> FakeStructure:
        return self._prototype

    def reader(self, buffers) -> FakeReader:
        self._on_read()
        return FakeReader(self._data, buffers)


class FakeHeader:
    def __init__(
        self,
        data: Dict[str, np.ndarray],
        translation: Optional[Tuple[float, float, float]],
        *,
        color_limits: Optional[Tuple[float, float]] = None,
        prototype_range: Tuple[float, float] = (0, 255),
        on_read=lambda: None,
    ) -> None:
        self.point_fields = list(data)
        self.point_count = len(next(iter(data.values()))) if data else 0
        self.translation = np.array(translation if translation is not None else (0.0, 0.0, 0.0))
        self.rotation_matrix = np.eye(3)
        self.node = FakeStructure()
        if translation is not None:
            self.node["pose"] = FakeStructure()
        if color_limits is not None:
            limits = FakeStructure()
            for channel in ("colorRed", "colorGreen", "colorBlue"):
                limits[f"{channel}Minimum"] = FakeValue(color_limits[0])
                limits[f"{channel}Maximum"] = FakeValue(color_limits[1])
            self.node["colorLimits"] = limits
        self.points = FakePoints(data, prototype_range, on_read)

    def has_pose(self) -> bool:
        return "pose" in self.node


class FakeE57:
    """Serves scans from memory with the subset of the pye57 API the reader uses."""

    def __init__(
        self,
        scans: List[Dict[str, np.ndarray]],
        poses: List[Optional[Tuple[float, float, float]]],
        **header_options,
    ) -> None:
        self._scans = scans
        self._poses = poses
        self._header_options = header_options
        self.image_file = object()
        self.read_calls: List[int] = []
        self.closed = False

    @property
    def scan_count(self) -> int:
        return len(self._scans)

    def get_header(self, index: int) -> FakeHeader:
        return FakeHeader(
            self._scans[index],
            self._poses[index],
            on_read=lambda: self.read_calls.append(index),
            **self._header_options,
        )

    def close(self) -> None:
        self.closed = True


def build_scan(count: int, *, colors: bool = False, intensity: bool = False, offset: float = 0.0):
    base = np.arange(count, dtype=np.float64) + offset
    scan = {"cartesianX": base, "cartesianY": base * 2, "cartesianZ": base * 3}
    if colors:
        scan["colorRed"] = np.full(count, 255, dtype=np.uint8)
        scan["colorGreen"] = np.zeros(count, dtype=np.uint8)
        scan["colorBlue"] = np.full(count, 128, dtype=np.uint8)
    if intensity:
        scan["intensity"] = np.linspace(0.0, 1.0, count)
    return scan


@pytest.fixture
def make_scan():
    """Return the in-memory scan builder."""

    return build_scan


@pytest.fixture
def fake_e57(monkeypatch):
    """Return a function that installs scans behind ``pye57.E57``."""

    def install(scans, poses=None, **header_options) -> FakeE57:
        fake = FakeE57(scans, poses or [None] * len(scans), **header_options)
        monkeypatch.setattr(pye57, "E57", lambda path: fake)
        monkeypatch.setattr(pye57.libe57, "SourceDestBuffer", FakeBuffer)
        monkeypatch.setattr(pye57.libe57, "VectorSourceDestBuffer", list)
        monkeypatch.setattr(pye57.libe57, "StructureNode", lambda node: node)
        return fake

    return install


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in ("DISPLAY_SCANS", "CHUNK_SIZE", "ENTITY_PATH_PREFIX", "APPLICATION_ID", "LOG_LEVEL"):
        monkeypatch.delenv(f"RERUN_E57_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
