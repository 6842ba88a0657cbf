"""In-memory session tokens for the password-protected mode."""
from __future__ import annotations

import threading
import time
import uuid
from typing import Optional, Set

_B36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    if n <= 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_B36[r])
    return "".join(reversed(out))


def new_token() -> str:
    """Random part plus a millisecond clock part. Not a cryptographic secret."""
    return uuid.uuid4().hex + _base36(int(time.time() * 1000))


class SessionStore:
    """
    Set of issued tokens. Tokens never expire; the store lives as long as
    the process that created it.
    """

    def __init__(self) -> None:
        self._tokens: Set[str] = set()
        self._lock = threading.Lock()

    def issue(self) -> str:
        token = new_token()
        with self._lock:
            self._tokens.add(token)
        return token

    def is_valid(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return token in self._tokens

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and self.is_valid(token)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
