"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor contract: every service receives the
    store bundle it works on.  Services group their writes with
    ``stores.atomic()`` and never commit -- the caller owns the outer
    transaction.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Failure modes:
    - A subclass that commits on its own breaks the all-or-nothing
      guarantee of imports and fee runs.
"""

from abc import ABC

from club_kernel.stores.protocols import Stores


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never commits or rolls back the caller's transaction.
    """

    def __init__(self, stores: Stores):
        """
        Initialize the service.

        Args:
            stores: Store bundle (SqlStores in production).
        """
        self.stores = stores
