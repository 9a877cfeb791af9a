"""
oimerge: merge engine for OIFITS optical interferometry data.

Subpackages
-----------
- model:       In-memory OIFITS tables, targets and collections
- processing:  Selection and merge engine
- io:          OIFITS reading and writing
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version(__name__)
except PackageNotFoundError:  # local editable install
    __version__ = "0.0.0-dev"

__all__ = [
    "model",
    "processing",
    "io",
]

from . import io, model, processing
