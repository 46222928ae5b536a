"""
ledger.gateway
~~~~~~~~~~~~~~

The key-value interface the ledger service exposes, and the helpers the
core uses to interpret its failures.

The ledger offers single-key reads and writes only.  Reads are
unauthenticated; writes need a signing identity supplied by the wallet
layer before every call.  An absent key reads as ``b""``.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, runtime_checkable

from ..errors import AuthorizationDeclined, MissingIdentity, WriteFailure

logger = logging.getLogger(__name__)

#: EIP-1193 provider error code for "user rejected request".
USER_REJECTED_CODE = 4001
#: Error code wallets built on ethers report for a refused signature.
ACTION_REJECTED = "ACTION_REJECTED"
_REJECTION_PHRASES = ("user rejected", "user denied")


@runtime_checkable
class LedgerGateway(Protocol):
    """Async key-value backend reached through the ledger service."""

    async def is_available(self) -> bool:
        ...

    async def get_data(self, key: str) -> bytes:
        ...

    async def set_data(self, key: str, value: bytes, identity: str) -> None:
        ...


def is_user_rejection(exc: BaseException) -> bool:
    """Return ``True`` if ``exc`` signals that the user refused to sign."""
    if isinstance(exc, AuthorizationDeclined):
        return True
    code = getattr(exc, "code", None)
    if code in (USER_REJECTED_CODE, ACTION_REJECTED):
        return True
    message = str(exc).lower()
    return any(phrase in message for phrase in _REJECTION_PHRASES)


async def write(gateway: LedgerGateway, key: str, value: bytes, identity: str) -> None:
    """
    Perform one authorized write and normalise its failure.

    Raises
    ------
    MissingIdentity
        If ``identity`` is empty.
    AuthorizationDeclined
        If the wallet reports that the user refused the write.
    WriteFailure
        For any other error raised by the gateway.
    """
    if not identity:
        raise MissingIdentity("Please connect wallet first")
    try:
        await gateway.set_data(key, value, identity)
    except AuthorizationDeclined:
        raise
    except Exception as exc:
        if is_user_rejection(exc):
            raise AuthorizationDeclined(str(exc)) from exc
        raise WriteFailure(key, str(exc) or type(exc).__name__) from exc
    logger.debug("wrote %d bytes to %s", len(value), key)


class MemoryGateway:
    """
    In-process ledger for tests and local development.

    ``available`` drives the capability probe, and ``reject_writes`` makes
    every write fail the way a refused wallet prompt does.  ``writers``
    records the identity behind the last write of each key.
    """

    def __init__(self, data: Optional[Dict[str, bytes]] = None, available: bool = True) -> None:
        self.data: Dict[str, bytes] = dict(data or {})
        self.writers: Dict[str, str] = {}
        self.available = available
        self.reject_writes = False

    async def is_available(self) -> bool:
        return self.available

    async def get_data(self, key: str) -> bytes:
        return self.data.get(key, b"")

    async def set_data(self, key: str, value: bytes, identity: str) -> None:
        if self.reject_writes:
            raise AuthorizationDeclined("user rejected transaction")
        self.data[key] = bytes(value)
        self.writers[key] = identity
