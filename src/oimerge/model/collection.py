"""
Ordered set of OIFITS files sharing one target identity resolver.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from .oifits_file import OIFitsFile
from .target import TargetManager

logger = logging.getLogger(__name__)


class OIFitsCollection:
    """Input files of a merge, in a stable order."""

    def __init__(
        self,
        oifits_files: Optional[Iterable[OIFitsFile]] = None,
        target_manager: Optional[TargetManager] = None,
    ):
        self.target_manager = target_manager or TargetManager()
        self._files: List[OIFitsFile] = []
        for oifits in oifits_files or ():
            self.add(oifits)

    @classmethod
    def create(cls, *oifits_files: OIFitsFile) -> "OIFitsCollection":
        return cls(oifits_files)

    def add(self, oifits: OIFitsFile) -> None:
        if any(f is oifits for f in self._files):
            logger.debug("%s already in collection", oifits)
            return
        self._files.append(oifits)
        if oifits.oi_target is not None:
            oifits.oi_target.register_targets(self.target_manager)
        else:
            logger.warning("%s has no OI_TARGET table", oifits)

    @property
    def oifits_files(self) -> List[OIFitsFile]:
        return list(self._files)

    def is_empty(self) -> bool:
        return not self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[OIFitsFile]:
        return iter(self._files)

    def find_oidata(self, selector=None):
        """Select data tables; see :func:`oimerge.processing.selector.find_oidata`."""
        from ..processing.selector import find_oidata

        return find_oidata(self, selector)
