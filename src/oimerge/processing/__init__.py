"""
OIFITS merge processing.

This package merges several OIFITS files into one while keeping references
between data tables and lookup tables consistent:

- target directories are unified and target ids renumbered densely
- identical lookup tables are collapsed, clashing names get a numeric suffix
- data rows whose target or night is not selected are removed
"""

from .base import (
    Diagnostic,
    DiagnosticKind,
    InvalidInputError,
    MergeConfig,
    MergeError,
    MergeResult,
    OIFitsFormatError,
)
from .comparator import STRICT_COMPARATOR, TableComparator
from .context import MergeContext
from .dedup import LookupTableDeduplicator
from .merger import (
    OIFitsMerger,
    create_oifits,
    merge,
    merge_collection,
    merge_files,
    resolve_version,
)
from .remap import IdRemapper, TargetIdMap
from .rows import DataTablePlan, RowFilter
from .selector import Selector, SelectorResult, find_oidata
from .targets import TargetUnifier

__all__ = [
    # Core interfaces
    "MergeConfig",
    "MergeResult",
    "MergeContext",
    "Diagnostic",
    "DiagnosticKind",
    "MergeError",
    "InvalidInputError",
    "OIFitsFormatError",
    # Entry points
    "OIFitsMerger",
    "merge",
    "merge_collection",
    "merge_files",
    "create_oifits",
    "resolve_version",
    # Selection
    "Selector",
    "SelectorResult",
    "find_oidata",
    # Components
    "IdRemapper",
    "TargetIdMap",
    "TableComparator",
    "STRICT_COMPARATOR",
    "LookupTableDeduplicator",
    "TargetUnifier",
    "RowFilter",
    "DataTablePlan",
]
