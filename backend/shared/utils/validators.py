"""
Shared validators for input sanitization.
Used by the request schemas for menu images and free-text fields.
"""

import ipaddress
import re
from urllib.parse import urlparse
from typing import Optional

# Hosts that must never appear in stored image URLs (internal network, cloud metadata)
BLOCKED_HOSTS = (
    "localhost",
    "metadata.google",
    "metadata.google.internal",
)

BLOCKED_SCHEMES = {"javascript", "data", "file", "ftp", "mailto", "tel"}

MAX_URL_LENGTH = 2048

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def _is_private_host(host: str) -> bool:
    hostname = host.split("@")[-1].rsplit(":", 1)[0].strip("[]")
    if hostname in BLOCKED_HOSTS:
        return True
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_unspecified


def validate_image_url(url: Optional[str]) -> Optional[str]:
    """
    Validate an image URL for a category or menu item.

    Returns:
        The stripped URL, or None for empty input.

    Raises:
        ValueError: If the scheme is not http(s), the host is internal or
            the URL is too long.
    """
    if url is None:
        return None

    url = url.strip()
    if not url:
        return None

    # Relative paths served by the frontend (e.g. "/images/burger.png")
    if url.startswith("/") and not url.startswith("//"):
        return url

    if len(url) > MAX_URL_LENGTH:
        raise ValueError(f"URL too long (max {MAX_URL_LENGTH} characters)")

    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme in BLOCKED_SCHEMES or scheme not in ("http", "https"):
        raise ValueError("Only http and https image URLs are allowed")

    host = parsed.netloc.lower()
    if not host:
        raise ValueError("Image URL has no host")

    if _is_private_host(host):
        raise ValueError("Internal image URLs are not allowed")

    return url


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace and control characters from free text."""
    if value is None:
        return None
    return _CONTROL_CHARS.sub("", value).strip()
