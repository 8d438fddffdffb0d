"""Trusted-delegate allow-list.

Delegates (typically a cross-chain relay) may register, withdraw and deposit
on behalf of another provider. The ledger's invariants do not change based
on who the immediate caller is; this list only gates who may name a
provider other than themselves.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

import structlog

from aqua.models.types import normalize_address

from .errors import NotOwner, NotTrustedDelegate

logger = structlog.get_logger()


class TrustedDelegates:
    """Owner-administered set of delegate addresses."""

    def __init__(self, owner: str, delegates: Iterable[str] = ()) -> None:
        self._owner = normalize_address(owner, validate=True)
        self._delegates = {normalize_address(d, validate=True) for d in delegates}
        self._lock = threading.Lock()

    @property
    def owner(self) -> str:
        return self._owner

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str):
            return False
        return normalize_address(address) in self._delegates

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(sorted(self._delegates))

    def __len__(self) -> int:
        return len(self._delegates)

    def _require_owner(self, caller: str) -> None:
        if normalize_address(caller) != self._owner:
            logger.warning("delegate_admin_refused", caller=caller)
            raise NotOwner(f"{caller} is not the delegate owner")

    def add(self, caller: str, delegate: str) -> None:
        """Allow `delegate` to act on behalf of providers.

        Raises:
            NotOwner: If caller is not the owner
        """
        self._require_owner(caller)
        with self._lock:
            self._delegates.add(normalize_address(delegate, validate=True))
        logger.info("delegate_added", delegate=delegate)

    def remove(self, caller: str, delegate: str) -> None:
        """Revoke a delegate. Removing an unknown delegate is a no-op.

        Raises:
            NotOwner: If caller is not the owner
        """
        self._require_owner(caller)
        with self._lock:
            self._delegates.discard(normalize_address(delegate))
        logger.info("delegate_removed", delegate=delegate)

    def require(self, caller: str) -> None:
        """Raise unless caller is a trusted delegate.

        Raises:
            NotTrustedDelegate: If caller is not on the allow-list
        """
        if caller not in self:
            logger.warning("delegate_call_refused", caller=caller)
            raise NotTrustedDelegate(f"{caller} is not a trusted delegate")
