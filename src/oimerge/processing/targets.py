"""
Unification of the target directories of all merged inputs.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from ..model import OITarget, Target, TargetManager
from .remap import IdRemapper

logger = logging.getLogger(__name__)


class TargetUnifier:
    """
    Build the output OI_TARGET from the selected targets and map every source
    directory's local ids onto the new dense numbering (1..N).
    """

    def __init__(self, target_manager: TargetManager):
        self.target_manager = target_manager

    def build_directory(self, targets: List[Target], oi_revn: int = 1) -> OITarget:
        return OITarget.from_targets(
            targets, range(1, len(targets) + 1), oi_revn=oi_revn
        )

    def new_target_ids(self, targets: List[Target]) -> Dict[int, int]:
        """Global target uid -> new target id, in selection order."""
        new_ids: Dict[int, int] = {}
        for i, target in enumerate(targets):
            uid = self.target_manager.uid_of(target)
            if uid is None:
                uid = self.target_manager.uid_of(self.target_manager.register(target))
            new_ids.setdefault(uid, i + 1)
        return new_ids

    def run(
        self,
        targets: List[Target],
        used_oi_targets: Iterable[OITarget],
        remapper: IdRemapper,
        oi_revn: int = 1,
    ) -> OITarget:
        """
        Return the new directory and fill ``remapper`` with one id map per
        source directory. Ids of unselected targets stay unmapped.
        """
        new_oi_target = self.build_directory(targets, oi_revn=oi_revn)
        new_ids = self.new_target_ids(targets)

        for oi_target in used_oi_targets:
            mapping = remapper.scope(oi_target.handle)
            for target in targets:
                new_id = new_ids[self.target_manager.uid_of(target)]
                for old_id in sorted(oi_target.get_target_ids(self.target_manager, target)):
                    mapping.assign(old_id, new_id)
            logger.debug("mapIds[%s]: %s", mapping.scope, dict(mapping.items()))

        logger.debug("newTargetIds: %s", {str(t): i + 1 for i, t in enumerate(targets)})
        return new_oi_target
