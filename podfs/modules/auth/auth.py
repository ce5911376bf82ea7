"""
Authentication module for the PodFS HTTP surface.

API keys are optional. With no keys configured every request is allowed,
which is the normal setup when the bridge listens on localhost next to
its caller.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Dict, Optional

from podfs.config.provider import AuthConfig

logger = logging.getLogger("podfs.auth")


@dataclass
class AuthResult:
    """Standardized authentication result."""
    ok: bool
    identity: Optional[str] = None
    error: Optional[str] = None


class AuthModule:
    """Validates X-API-Key values against the configured keys."""

    def __init__(self, config: AuthConfig):
        """
        Initialize auth module.

        Args:
            config: Authentication configuration (key -> service identity)
        """
        self.api_keys: Dict[str, Optional[str]] = dict(config.api_keys)

    @property
    def enabled(self) -> bool:
        """Auth is only enforced once at least one key is configured."""
        return bool(self.api_keys)

    def verify_api_key(self, api_key: Optional[str]) -> AuthResult:
        """
        Verify an API key.

        Returns:
            AuthResult with the service identity when the key matches
        """
        if not self.enabled:
            return AuthResult(ok=True, identity="anonymous")

        if not api_key:
            return AuthResult(ok=False, error="Missing API key")

        # Compare against every key to keep timing independent of position
        matched: Optional[str] = None
        for key in self.api_keys:
            if secrets.compare_digest(api_key.encode(), key.encode()):
                matched = key

        if matched is None:
            logger.warning("Rejected request with invalid API key")
            return AuthResult(ok=False, error="Invalid API key")

        return AuthResult(ok=True, identity=self.api_keys[matched] or "default")
