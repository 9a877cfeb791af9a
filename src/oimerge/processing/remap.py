"""
Identifier remapping between locally scoped ids and the merged numbering.

Target ids are only unique within one OI_TARGET table, so every source
directory gets its own :class:`TargetIdMap`. Ids missing from a map are
"extra" ids: they resolve to ``UNDEFINED_SHORT`` and are reported once.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, Optional

import numpy as np

from ..model import UNDEFINED_SHORT

logger = logging.getLogger(__name__)

ExtraCallback = Callable[[int], None]


class TargetIdMap:
    """Old id -> new id mapping for one source target directory."""

    def __init__(self, scope: str = ""):
        self.scope = scope
        self._ids: Dict[int, int] = {}
        self._extras: Dict[int, None] = {}

    def assign(self, old_id: int, new_id: int) -> None:
        self._ids[int(old_id)] = int(new_id)

    def get(self, old_id: int) -> Optional[int]:
        """Mapped id, ``UNDEFINED_SHORT`` for known extras, else ``None``."""
        old_id = int(old_id)
        if old_id in self._extras:
            return UNDEFINED_SHORT
        return self._ids.get(old_id)

    def mark_extra(self, old_id: int) -> None:
        """Remember an unmapped id so that later lookups give UNDEFINED_SHORT."""
        self._extras[int(old_id)] = None

    def resolve(self, old_id: int, on_extra: Optional[ExtraCallback] = None) -> int:
        """
        Mapped id; unknown ids become extras resolving to ``UNDEFINED_SHORT``.

        A new extra is reported once, through ``on_extra`` when given and
        as a log warning otherwise.
        """
        new_id = self.get(old_id)
        if new_id is None:
            self.mark_extra(old_id)
            if on_extra is not None:
                on_extra(int(old_id))
            else:
                logger.warning(
                    "Extra TargetId = %d found in %s ! Using [%d] instead "
                    "(rows will be removed)",
                    old_id,
                    self.scope or "table",
                    UNDEFINED_SHORT,
                )
            new_id = UNDEFINED_SHORT
        return new_id

    def check(
        self, ids: Iterable[int], on_extra: Optional[ExtraCallback] = None
    ) -> bool:
        """
        True when at least one of the given ids is an extra or gets a new
        value; extras met here are memoized.
        """
        changed = False
        for old_id in ids:
            new_id = self.resolve(old_id, on_extra)
            if new_id != int(old_id):
                changed = True
        return changed

    def apply(self, ids) -> np.ndarray:
        """Remap an id column; unknown ids map to ``UNDEFINED_SHORT``."""
        ids = np.asarray(ids)
        lookup = {int(old): self.resolve(old) for old in np.unique(ids)}
        return np.array([lookup[int(i)] for i in ids], dtype=np.int16)

    @property
    def extras(self) -> list:
        return list(self._extras)

    def items(self) -> Iterator:
        return iter(self._ids.items())

    def __contains__(self, old_id: int) -> bool:
        return int(old_id) in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"TargetIdMap({self.scope}: {self._ids}, extras={self.extras})"


class IdRemapper:
    """Target id maps keyed by the handle of their source directory."""

    def __init__(self):
        self._maps: Dict[int, TargetIdMap] = {}

    def scope(
        self,
        handle: int,
        label: str = "",
    ) -> TargetIdMap:
        """Return the map of one source directory, creating it if needed."""
        mapping = self._maps.get(handle)
        if mapping is None:
            mapping = TargetIdMap(label or f"OI_TARGET#{handle}")
            self._maps[handle] = mapping
        return mapping

    def get(self, handle: int) -> Optional[TargetIdMap]:
        return self._maps.get(handle)

    def __contains__(self, handle: int) -> bool:
        return handle in self._maps

    def __len__(self) -> int:
        return len(self._maps)

    def __repr__(self) -> str:
        return f"IdRemapper({list(self._maps.values())})"
