"""
Configuration, result and error types shared by the merge processing modules.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..model import UNDEFINED, OIFitsStandard


class MergeConfig(BaseModel):
    """Configuration for merge operations with sensible defaults."""

    std: Optional[OIFitsStandard] = Field(
        default=None,
        description="OIFITS version of the output; highest input version if unset",
    )
    dedup_correlation: bool = Field(
        default=False,
        description="Reuse an identical OI_CORR table instead of copying it again",
    )
    undefined_arrname: str = Field(
        default=UNDEFINED, description="ARRNAME used when no OI_ARRAY matches"
    )

    model_config = {"extra": "forbid"}

    @field_validator("std", mode="before")
    @classmethod
    def parse_std(cls, v):
        return None if v is None else OIFitsStandard.from_value(v)

    @classmethod
    def from_settings(cls, settings=None, **overrides) -> "MergeConfig":
        if settings is None:
            from ..settings import settings
        values = {
            "std": settings.default_version,
            "dedup_correlation": settings.dedup_correlation,
            "undefined_arrname": settings.undefined_arrname,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class DiagnosticKind(str, Enum):
    """Recoverable conditions met while merging."""

    REFERENCE_UNRESOLVABLE = "reference_unresolvable"
    REFERENCE_DEGRADED = "reference_degraded"
    ROW_INCONSISTENCY = "row_inconsistency"
    UNSUPPORTED_TABLE = "unsupported_table"


class Diagnostic(BaseModel):
    """One warning emitted during a merge."""

    kind: DiagnosticKind
    table: str
    message: str

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.table}: {self.message}"


class MergeResult(BaseModel):
    """Result container for merge operations."""

    oifits: Any
    version: OIFitsStandard
    tables_in: int = 0
    tables_out: int = 0
    rows_in: int = 0
    rows_out: int = 0
    dropped_tables: List[str] = Field(default_factory=list)
    filtered_tables: List[str] = Field(default_factory=list)
    diagnostics: List[Diagnostic] = Field(default_factory=list)

    model_config = {"arbitrary_types_allowed": True}

    @property
    def warnings(self) -> List[str]:
        return [str(d) for d in self.diagnostics]

    @property
    def degraded(self) -> bool:
        return bool(self.diagnostics)

    def statistics(self) -> Dict[str, Any]:
        """Compute merge operation statistics."""
        return {
            "version": self.version.ordinal,
            "tables_in": self.tables_in,
            "tables_out": self.tables_out,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "dropped_tables": len(self.dropped_tables),
            "filtered_tables": len(self.filtered_tables),
            "row_efficiency": self.rows_out / self.rows_in if self.rows_in else 0,
            "warnings": len(self.diagnostics),
        }


class MergeError(Exception):
    """Base exception for merge operations."""

    pass


class InvalidInputError(MergeError, ValueError):
    """Exception raised when there is nothing to merge."""

    pass


class OIFitsFormatError(MergeError):
    """Exception raised for unreadable or malformed OIFITS files."""

    pass
