"""
Element Heuristics
==================
Pure text / attribute classifiers behind every guardrail.

Nothing in this module touches a browser, so the safety rules can be
tested in isolation:

  - ``classify_as_login(text)``          — "log in" / "sign in" affordances
  - ``classify_as_destructive(text)``    — controls that must never be clicked
  - ``is_password_field(name, type)``    — fields that must never be auto-filled
  - ``is_identity_field(name, type)``    — email / username login fields
  - ``classify_field_semantic(name, type)`` → ``SyntheticValueKind``
  - ``synthetic_value(kind)``            — safe filler for a field kind
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

# Text on controls that suggests a login entry point
_LOGIN_TEXT_RE = re.compile(r"\b(?:log|sign)\s*-?\s*in\b", re.IGNORECASE)

# Text on controls whose click could destroy data or end the session
_DESTRUCTIVE_TEXT_RE = re.compile(
    r"delete|remove|sign\s*-?\s*out|log\s*-?\s*out|destroy|purge|deactivate|unsubscribe",
    re.IGNORECASE,
)

_PASSWORD_NAME_RE = re.compile(r"passw(?:or)?d|passwd|pwd|passcode|\bpass\b", re.IGNORECASE)
_EMAIL_NAME_RE = re.compile(r"e-?mail", re.IGNORECASE)
_USERNAME_NAME_RE = re.compile(r"user(?:_|-)?(?:name|id)?|login|account", re.IGNORECASE)
_PHONE_NAME_RE = re.compile(r"phone|mobile|\btel\b|cell", re.IGNORECASE)
_PERSON_NAME_RE = re.compile(r"name", re.IGNORECASE)

# Input types that are not free-text and are never filled
NON_TEXT_INPUT_TYPES = frozenset([
    "hidden", "checkbox", "radio", "submit", "button", "reset", "file",
    "image", "range", "color", "date", "datetime-local", "month", "week", "time",
])


class SyntheticValueKind(str, Enum):
    """Semantic bucket for a fillable field."""
    PASSWORD = "password"     # never filled
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    NAME = "name"
    TEXT = "text"


_SYNTHETIC_VALUES = {
    SyntheticValueKind.EMAIL: "test.user@example.com",
    SyntheticValueKind.PHONE: "555-010-0199",
    SyntheticValueKind.NUMBER: "5",
    SyntheticValueKind.NAME: "Test User",
    SyntheticValueKind.TEXT: "Test input",
}


def _norm(value: Optional[str]) -> str:
    return (value or "").strip()


def classify_as_login(text: Optional[str]) -> bool:
    """True if *text* reads like a "log in" / "sign in" control."""
    return bool(_LOGIN_TEXT_RE.search(_norm(text)))


def classify_as_destructive(text: Optional[str]) -> bool:
    """True if *text* reads like a delete / remove / sign-out control."""
    return bool(_DESTRUCTIVE_TEXT_RE.search(_norm(text)))


def is_password_field(
    name: Optional[str],
    input_type: Optional[str],
    autocomplete: Optional[str] = None,
) -> bool:
    """True for password-typed or password-named fields."""
    if _norm(input_type).lower() == "password":
        return True
    if "password" in _norm(autocomplete).lower():
        return True
    return bool(_PASSWORD_NAME_RE.search(_norm(name)))


def is_identity_field(
    name: Optional[str],
    input_type: Optional[str],
    autocomplete: Optional[str] = None,
) -> bool:
    """True for fields that take a login identifier (email or username)."""
    if is_password_field(name, input_type, autocomplete):
        return False
    input_type = _norm(input_type).lower()
    if input_type == "email":
        return True
    if _norm(autocomplete).lower() in ("username", "email"):
        return True
    if input_type not in ("", "text"):
        return False
    name = _norm(name)
    return bool(_EMAIL_NAME_RE.search(name) or _USERNAME_NAME_RE.search(name))


def classify_field_semantic(
    name: Optional[str],
    input_type: Optional[str],
) -> SyntheticValueKind:
    """Map a field's name and type to the kind of synthetic value it gets."""
    name = _norm(name)
    input_type = _norm(input_type).lower()

    if is_password_field(name, input_type):
        return SyntheticValueKind.PASSWORD
    if input_type == "email" or _EMAIL_NAME_RE.search(name):
        return SyntheticValueKind.EMAIL
    if input_type == "tel" or _PHONE_NAME_RE.search(name):
        return SyntheticValueKind.PHONE
    if input_type == "number":
        return SyntheticValueKind.NUMBER
    if _PERSON_NAME_RE.search(name):
        return SyntheticValueKind.NAME
    return SyntheticValueKind.TEXT


def synthetic_value(kind: SyntheticValueKind) -> Optional[str]:
    """Safe filler for *kind*; None for kinds that must stay empty."""
    return _SYNTHETIC_VALUES.get(kind)
