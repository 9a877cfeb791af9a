"""
OIFITS standard versions and shared model constants.
"""

from __future__ import annotations

from enum import Enum

import numpy as np

# Reserved target id meaning "no valid mapping"; rows carrying it are removed
UNDEFINED_SHORT: int = int(np.iinfo(np.int16).min)

# Reserved lookup-table name used when a reference cannot be resolved
UNDEFINED = "UNDEFINED"

# Primary header CONTENT keyword value of OIFITS 2 files
CONTENT_OIFITS2 = "OIFITS2"

OI_TARGET = "OI_TARGET"
OI_WAVELENGTH = "OI_WAVELENGTH"
OI_ARRAY = "OI_ARRAY"
OI_CORR = "OI_CORR"
OI_VIS = "OI_VIS"
OI_VIS2 = "OI_VIS2"
OI_T3 = "OI_T3"
OI_FLUX = "OI_FLUX"


class OIFitsStandard(Enum):
    """Supported revisions of the OIFITS format."""

    VERSION_1 = 1
    VERSION_2 = 2

    @property
    def ordinal(self) -> int:
        return self.value

    @property
    def allowed_extnames(self) -> frozenset:
        names = {OI_TARGET, OI_WAVELENGTH, OI_ARRAY, OI_VIS, OI_VIS2, OI_T3}
        if self is OIFitsStandard.VERSION_2:
            names |= {OI_CORR, OI_FLUX}
        return frozenset(names)

    def supports(self, extname: str) -> bool:
        return extname in self.allowed_extnames

    @property
    def supports_correlation(self) -> bool:
        return self.supports(OI_CORR)

    @classmethod
    def from_value(cls, value) -> "OIFitsStandard":
        """Accept an enum member, an ordinal or a string such as '2' or 'VERSION_2'."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip().upper()
            if text in cls.__members__:
                return cls[text]
            value = text.removeprefix("V")
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValueError(f"Unsupported OIFITS version: {value!r}") from None

    @classmethod
    def lowest(cls) -> "OIFitsStandard":
        return min(cls, key=lambda std: std.ordinal)
