"""Working tree operations built on the core store.

- Checkout and status computation
- Object database consistency checks
"""

from strata.operations.checkout import CheckoutEngine, StatusReport, ChangeKind
from strata.operations.fsck import FsckReport, check_repository

__all__ = [
    'CheckoutEngine', 'StatusReport', 'ChangeKind',
    'FsckReport', 'check_repository',
]
