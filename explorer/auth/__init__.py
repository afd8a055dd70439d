"""
Authentication
==============
Generic form-based login for the authenticated crawl phase.

    - ``Credentials``   — optional email / password pair (redacted repr)
    - ``LoginHandler``  — field discovery, submission, success detection
"""

from .credentials import Credentials
from .login_handler import (
    LoginHandler,
    element_hidden,
    element_stale,
    location_changed,
    poll_until,
)

__all__ = [
    "Credentials",
    "LoginHandler",
    "element_hidden",
    "element_stale",
    "location_changed",
    "poll_until",
]
