"""Object database consistency check."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from strata.core.errors import IntegrityError
from strata.core.objects import Commit, Tree

logger = logging.getLogger(__name__)


@dataclass
class FsckReport:
    """
    Result of a full object scan.

    - corrupt: digest -> reason, for records failing the integrity check
    - missing: (referring digest, missing digest) pairs breaking closure
    """
    checked: int = 0
    corrupt: Dict[str, str] = field(default_factory=dict)
    missing: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.corrupt and not self.missing


def check_repository(store) -> FsckReport:
    """
    Read every stored object and verify that everything it points to exists.

    Nothing is repaired; problems are only reported.
    """
    report = FsckReport()

    for digest in store.iter_digests():
        report.checked += 1
        try:
            obj = store.read_object(digest)
        except IntegrityError as e:
            report.corrupt[digest] = e.reason
            logger.warning("Corrupt object %s: %s", digest, e.reason)
            continue

        if isinstance(obj, Tree):
            children = [entry.hash for entry in obj.entries]
        elif isinstance(obj, Commit):
            children = [obj.tree] + obj.parents
        else:
            children = []

        for child in children:
            if not store.contains(child):
                report.missing.append((digest, child))
                logger.warning("Object %s references missing %s", digest, child)

    return report
