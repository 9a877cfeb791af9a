"""
Default data selection: which data tables, targets and nights take part in a merge.

The merge engine only consumes a :class:`SelectorResult`; any other selection
logic can feed it as long as it fills the same structure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import numpy as np
import yaml
from pydantic import BaseModel, Field

from ..model import (
    NightIdMatcher,
    OIData,
    OIFitsCollection,
    OIFitsFile,
    Target,
    TargetManager,
    norm_name,
)

logger = logging.getLogger(__name__)


class Selector(BaseModel):
    """Criteria restricting the merged content; unset criteria match everything."""

    target: Optional[str] = Field(None, description="Target name to keep")
    insname: Optional[str] = Field(None, description="INSNAME to keep")
    night_ids: Optional[List[int]] = Field(None, description="Night ids to keep")
    extnames: Optional[List[str]] = Field(
        None, description="Data table kinds to keep (OI_VIS, OI_VIS2, ...)"
    )

    model_config = {"extra": "forbid"}

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Selector":
        with Path(path).open("r", encoding="utf-8") as fh:
            cfg = yaml.safe_load(fh) or {}
        return cls(**cfg.get("selector", cfg))

    def is_empty(self) -> bool:
        return not any(
            (self.target, self.insname, self.night_ids, self.extnames)
        )


class SelectorResult:
    """
    Selected data tables with the distinct targets and nights they imply.

    Data tables are kept in insertion order; each one remembers the file it
    belongs to so that its lookup tables can be resolved by name.
    """

    def __init__(self, target_manager: TargetManager):
        self.target_manager = target_manager
        self._oidatas: List[OIData] = []
        self._owners: Dict[int, OIFitsFile] = {}
        self._files: Dict[int, OIFitsFile] = {}
        self._targets: Dict[int, Target] = {}
        self._nights: Dict[int, None] = {}

    @classmethod
    def from_collection(cls, collection: OIFitsCollection) -> "SelectorResult":
        return cls(collection.target_manager)

    def add(
        self,
        oifits: OIFitsFile,
        oidata: OIData,
        targets: Optional[Iterable[Target]] = None,
        night_ids: Optional[Iterable[int]] = None,
    ) -> None:
        """
        Add a selected table. Targets and nights default to every target and
        night the table refers to.
        """
        if oidata.handle in self._owners:
            return
        self._oidatas.append(oidata)
        self._owners[oidata.handle] = oifits
        self._files.setdefault(id(oifits), oifits)

        if targets is None:
            targets = _table_targets(oifits, oidata, self.target_manager)
        for target in targets:
            uid = self.target_manager.uid_of(target)
            if uid is None:
                target = self.target_manager.register(target)
                uid = self.target_manager.uid_of(target)
            self._targets.setdefault(uid, self.target_manager.get_global_target(target))

        if night_ids is None:
            night_ids = oidata.distinct_night_ids
        for night in night_ids:
            self._nights.setdefault(int(night), None)

    def is_empty(self) -> bool:
        return not self._oidatas

    def __len__(self) -> int:
        return len(self._oidatas)

    @property
    def sorted_oidatas(self) -> List[OIData]:
        return list(self._oidatas)

    @property
    def sorted_oifits_files(self) -> List[OIFitsFile]:
        return list(self._files.values())

    def get_oifits(self, oidata: OIData) -> OIFitsFile:
        return self._owners[oidata.handle]

    @property
    def distinct_targets(self) -> List[Target]:
        return list(self._targets.values())

    @property
    def distinct_night_ids(self) -> List[int]:
        return list(self._nights)

    @property
    def distinct_insnames(self) -> List[str]:
        return list(dict.fromkeys(t.insname for t in self._oidatas if t.insname))

    def __repr__(self) -> str:
        return (
            f"SelectorResult({len(self._oidatas)} tables, "
            f"targets={[str(t) for t in self.distinct_targets]}, "
            f"nights={self.distinct_night_ids})"
        )


def _table_targets(
    oifits: OIFitsFile, oidata: OIData, manager: TargetManager
) -> List[Target]:
    oi_target = oifits.oi_target
    if oi_target is None:
        return []
    targets = []
    for target_id in oidata.distinct_target_ids:
        target = oi_target.get_target_by_id(target_id)
        if target is not None:
            targets.append(target)
    return targets


def _resolve_selected_uids(
    manager: TargetManager, name: Optional[str]
) -> Optional[set]:
    if name is None:
        return None
    wanted = norm_name(name)
    uids = {
        manager.uid_of(target)
        for target in manager.targets
        if norm_name(target.name) == wanted
    }
    if not uids:
        logger.warning("Unknown target %r in selector", name)
    return uids


def find_oidata(
    collection: OIFitsCollection, selector: Optional[Selector] = None
) -> Optional[SelectorResult]:
    """
    Select the data tables of a collection matching a selector.

    A table is kept when at least one of its rows matches every criterion.
    Returns ``None`` when no table matches.
    """
    selector = selector or Selector()
    logger.info("Selector: %s", selector)

    manager = collection.target_manager
    target_uids = _resolve_selected_uids(manager, selector.target)
    matcher = NightIdMatcher(selector.night_ids)
    extnames = {e.upper() for e in selector.extnames} if selector.extnames else None

    result = SelectorResult.from_collection(collection)

    for oifits in collection:
        oi_target = oifits.oi_target
        if oi_target is None:
            continue
        for oidata in oifits.oi_datas:
            if extnames is not None and oidata.extname not in extnames:
                continue
            if selector.insname is not None and oidata.insname != selector.insname:
                continue

            # resolve every local id once
            row_targets: Dict[int, Optional[Target]] = {}
            for target_id in oidata.distinct_target_ids:
                local = oi_target.get_target_by_id(target_id)
                uid = None if local is None else manager.uid_of(local)
                if uid is not None and (target_uids is None or uid in target_uids):
                    row_targets[target_id] = manager.get_global_target(local)
                else:
                    row_targets[target_id] = None

            ids = oidata.target_id
            nights = oidata.night_id
            keep = np.array([row_targets[int(i)] is not None for i in ids], dtype=bool)
            keep &= matcher.mask(nights)
            if not keep.any():
                continue

            rows = np.flatnonzero(keep)
            targets = list(
                dict.fromkeys(row_targets[int(ids[i])] for i in rows).keys()
            )
            result.add(
                oifits,
                oidata,
                targets=targets,
                night_ids=dict.fromkeys(int(nights[i]) for i in rows),
            )

    if result.is_empty():
        logger.info("Merge: no matching data")
        return None

    logger.info("selected targets:  %s", [str(t) for t in result.distinct_targets])
    logger.info("selected insNames: %s", result.distinct_insnames)
    logger.info("selected nightIds: %s", result.distinct_night_ids)
    return result
