"""
Credential Pool - ordered API keys with an "active" cursor.

The pool never drops or reorders a key when it fails; exhaustion is purely
positional (the cursor is at the last key and that key failed too).
One pool lives for the whole app session and is passed explicitly to the
dispatcher and the report orchestrator, which share its cursor.
"""

import logging
import threading
from typing import Callable, Iterable, List, Optional, TypeVar

from app.core.exceptions import CredentialFailure, CredentialMissing, CredentialsExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")


def mask_credential(credential: Optional[str]) -> str:
    """Show only the last 4 characters of a key."""
    if not credential:
        return "<none>"
    if len(credential) <= 4:
        return "****"
    return f"****{credential[-4:]}"


class CredentialPool:
    """
    Usage:
        pool = CredentialPool(["key-a", "key-b"])
        pool.current()   # "key-a"
        pool.advance()   # "key-b"
        pool.advance()   # raises CredentialsExhausted, cursor stays at 1
    """

    def __init__(self, credentials: Iterable[str] = (), index: int = 0):
        self._credentials: List[str] = [c for c in credentials if c]
        self._index = 0
        self._lock = threading.RLock()
        if self._credentials:
            self._index = min(max(index, 0), len(self._credentials) - 1)

    def __len__(self) -> int:
        return len(self._credentials)

    @property
    def index(self) -> int:
        return self._index

    @property
    def credentials(self) -> List[str]:
        with self._lock:
            return list(self._credentials)

    def current(self) -> Optional[str]:
        """Active credential, or None when the pool is empty."""
        with self._lock:
            if not self._credentials:
                return None
            return self._credentials[self._index]

    def has_next(self) -> bool:
        with self._lock:
            return self._index + 1 < len(self._credentials)

    def advance(self) -> str:
        """Move to the next credential and return it."""
        with self._lock:
            if not self.has_next():
                raise CredentialsExhausted()
            self._index += 1
            credential = self._credentials[self._index]
            logger.info(
                f"Rotated to credential {self._index + 1}/{len(self._credentials)} "
                f"({mask_credential(credential)})"
            )
            return credential

    def reset(self) -> None:
        with self._lock:
            self._index = 0

    def replace(self, credentials: Iterable[str]) -> None:
        """
        Swap in a new key list.

        The cursor is kept when the active key survives at the same position
        (e.g. a key was appended); otherwise it goes back to the first key.
        """
        with self._lock:
            active = self.current()
            self._credentials = [c for c in credentials if c]
            if (
                active is None
                or self._index >= len(self._credentials)
                or self._credentials[self._index] != active
            ):
                self._index = 0


def call_with_rotation(
    pool: CredentialPool,
    call: Callable[[str], T],
    what: str = "request",
    batch_index: Optional[int] = None
) -> T:
    """
    Run `call(credential)` starting at the pool's active credential.

    A credential-class failure moves the cursor forward and repeats the same
    call; the pool running out raises CredentialsExhausted. Any other error
    propagates untouched.
    """
    while True:
        credential = pool.current()
        if credential is None:
            raise CredentialMissing()
        try:
            return call(credential)
        except CredentialFailure as exc:
            logger.warning(
                f"{what} failed with credential {pool.index + 1}/{len(pool)} "
                f"({mask_credential(credential)}): {type(exc).__name__}: {exc}"
            )
            if not pool.has_next():
                raise CredentialsExhausted(batch_index=batch_index) from exc
            pool.advance()
