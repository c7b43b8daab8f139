"""Mini README: E57 ingestion helpers.

Re-exports the reader that decodes scans from E57 files along with the
lightweight containers it produces.
"""

from .e57_reader import E57ReadError, E57ScanReader, ScanPoints, ScanSummary

__all__ = ["E57ReadError", "E57ScanReader", "ScanPoints", "ScanSummary"]
