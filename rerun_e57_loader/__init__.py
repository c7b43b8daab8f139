"""Mini README: Package initializer for the Rerun E57 loader.

Only the logger factory is re-exported here. Heavy imports (``pye57``,
``rerun``) happen in the submodules that need them, so importing the package
stays cheap.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
