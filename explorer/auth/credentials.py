"""
Credentials
===========
Optional ``{email, password}`` pair supplied by the caller.

Values are never logged and never written to artifacts: ``repr`` redacts
both fields so an accidental ``logger.info(creds)`` leaks nothing.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_ENV_PREFIXES = ("EXPLORER",)


@dataclass(repr=False)
class Credentials:
    """Plain credential container — resolved once, used by the auth handler."""
    email: Optional[str] = None
    password: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.email and not self.password

    def __repr__(self) -> str:
        email = "***" if self.email else None
        password = "***" if self.password else None
        return f"Credentials(email={email!r}, password={password!r})"

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> Optional["Credentials"]:
        """Build from an inbound ``auth`` object; None when absent or empty."""
        if not data:
            return None
        creds = cls(email=data.get("email") or None, password=data.get("password") or None)
        return None if creds.is_empty else creds

    @classmethod
    def resolve(
        cls,
        email: Optional[str] = None,
        password: Optional[str] = None,
        prefixes: Sequence[str] = DEFAULT_ENV_PREFIXES,
    ) -> Optional["Credentials"]:
        """Explicit values first, then ``{PREFIX}_EMAIL`` / ``{PREFIX}_PASSWORD``.

        Returns None when nothing was found.
        """
        for prefix in prefixes:
            if not email:
                email = os.environ.get(f"{prefix}_EMAIL", "")
            if not password:
                password = os.environ.get(f"{prefix}_PASSWORD", "")

        creds = cls(email=email or None, password=password or None)
        if creds.is_empty:
            return None
        logger.info(
            f"[AUTH] Credentials resolved "
            f"(email: {'yes' if creds.email else 'no'}, "
            f"password: {'yes' if creds.password else 'no'})"
        )
        return creds
