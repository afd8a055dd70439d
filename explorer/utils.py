"""
Utility Functions
URL normalization, origin comparison and resource-extension helpers.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class URLNormalizer:
    """
    Produces the canonical de-duplication key for a page reference.

    The key is used ONLY for visited-set membership, never for navigation:
      - scheme and host are lower-cased, default ports dropped
      - trailing slashes are stripped from the path (root stays ``/``)
      - the query string is dropped (tracking / filter variants are noise)
      - the fragment is kept (hash-routed views are distinct destinations)

    Anything that does not parse as an absolute URL is returned unchanged,
    which degrades de-duplication to exact matching.
    """

    # Non-navigable targets (documents, images, media, archives)
    SKIP_EXTENSIONS = {
        '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.svg', '.webp', '.ico',
        '.pdf', '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx',
        '.zip', '.rar', '.tar', '.gz', '.7z',
        '.mp3', '.mp4', '.avi', '.mov', '.wmv', '.flv', '.webm',
        '.csv', '.txt', '.rtf', '.odt',
    }

    def normalize(self, url: str) -> str:
        """
        Return the canonical key for *url*.

        Pure and total: never raises, deterministic, and idempotent
        (``normalize(normalize(u)) == normalize(u)``).
        """
        origin = self.origin(url)
        if origin is None:
            return url

        parsed = urlparse(url)
        path = parsed.path.rstrip('/') or '/'
        key = origin + path
        if parsed.fragment:
            key += '#' + parsed.fragment
        return key

    @staticmethod
    def origin(url: str) -> Optional[str]:
        """
        Return ``scheme://host[:port]`` for an absolute URL, or None.

        Default ports (80 for http, 443 for https) are omitted so that
        ``https://a.com:443`` and ``https://a.com`` share an origin.
        """
        try:
            parsed = urlparse(url)
            scheme = parsed.scheme.lower()
            host = (parsed.hostname or '').lower()
            port = parsed.port
        except (TypeError, ValueError, AttributeError):
            return None

        if not scheme or not host:
            return None

        if ':' in host:
            host = f'[{host}]'     # IPv6 literal
        if port is None or (scheme, port) in (('http', 80), ('https', 443)):
            return f'{scheme}://{host}'
        return f'{scheme}://{host}:{port}'

    def is_same_origin(self, url: str, reference_origin: str) -> bool:
        """Check whether *url* belongs to *reference_origin*."""
        origin = self.origin(url)
        return origin is not None and origin == reference_origin

    def has_skip_extension(self, url: str) -> bool:
        """True when the URL path ends in a known non-navigable extension."""
        try:
            path = urlparse(url).path.lower()
        except (TypeError, ValueError, AttributeError):
            return False
        return any(path.endswith(ext) for ext in self.SKIP_EXTENSIONS)


_default_normalizer = URLNormalizer()


def normalize_url(url: str) -> str:
    """Module-level shortcut for ``URLNormalizer().normalize(url)``."""
    return _default_normalizer.normalize(url)


def origin_of(url: str) -> Optional[str]:
    """Module-level shortcut for ``URLNormalizer.origin(url)``."""
    return URLNormalizer.origin(url)
