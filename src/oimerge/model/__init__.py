"""
In-memory model of OIFITS files: tables, targets, nights and collections.
"""

from .collection import OIFitsCollection
from .data import OIData, OIFlux, OIT3, OIVis, OIVis2
from .night import NightIdMatcher, night_id, night_ids
from .oi_target import OITarget
from .oifits_file import OIFitsFile, OIPrimaryHDU
from .standard import UNDEFINED, UNDEFINED_SHORT, OIFitsStandard
from .tables import OIArray, OICorr, OITable, OIWavelength
from .target import Target, TargetManager, norm_name

__all__ = [
    "OIFitsCollection",
    "OIData",
    "OIFlux",
    "OIT3",
    "OIVis",
    "OIVis2",
    "NightIdMatcher",
    "night_id",
    "night_ids",
    "OITarget",
    "OIFitsFile",
    "OIPrimaryHDU",
    "UNDEFINED",
    "UNDEFINED_SHORT",
    "OIFitsStandard",
    "OIArray",
    "OICorr",
    "OITable",
    "OIWavelength",
    "Target",
    "TargetManager",
    "norm_name",
]
