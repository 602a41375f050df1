"""Time-limited request nonces.

A nonce is an HMAC of the action name and the current "tick". A tick is
half the nonce lifetime, and a nonce is accepted for the tick it was made
in and the one before, so it stays valid for between half and a whole
lifetime.
"""

import hashlib
import hmac
import math
import time
from typing import Optional


class NonceManager:
    """Create and verify action nonces."""

    def __init__(self, secret_key: str, lifetime: int = 86400):
        if not secret_key:
            raise ValueError("secret_key is required for nonces")
        if lifetime < 2:
            raise ValueError("nonce lifetime must be at least 2 seconds")
        self.secret_key = secret_key.encode("utf-8")
        self.lifetime = lifetime

    def tick(self, now: Optional[float] = None) -> int:
        if now is None:
            now = time.time()
        return math.ceil(now / (self.lifetime / 2))

    def _digest(self, action: str, tick: int) -> str:
        message = f"{action}|{tick}".encode("utf-8")
        return hmac.new(self.secret_key, message, hashlib.sha256).hexdigest()[-12:]

    def create(self, action: str, now: Optional[float] = None) -> str:
        return self._digest(action, self.tick(now))

    def verify(self, nonce: Optional[str], action: str, now: Optional[float] = None) -> int:
        """Check a nonce.

        Returns:
            1 if generated in the current tick, 2 if in the previous one,
            0 if invalid
        """
        if not nonce:
            return 0

        supplied = str(nonce).encode("utf-8")

        tick = self.tick(now)
        for age, candidate in ((1, tick), (2, tick - 1)):
            if hmac.compare_digest(self._digest(action, candidate).encode("ascii"), supplied):
                return age
        return 0
