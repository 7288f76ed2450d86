"""
Choose the GitHub credential used for a single request.

Precedence, highest first:
1. The password of an HTTP Basic ``Authorization`` header (the username is
   ignored, so installers can be given ``https://token:<PAT>@host/simple/``
   or ``https://<anything>:<PAT>@host/simple/``).
2. The operator-configured fallback token.
3. No credential: GitHub is called anonymously.

A header that cannot be decoded is treated as absent rather than rejected,
so anonymous access keeps working.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def decode_basic_password(authorization: Optional[str]) -> Optional[str]:
    """
    Return the password carried by a Basic ``Authorization`` header value.

    Returns None when the header is missing, uses another scheme, is not
    valid base64/UTF-8, has no ``user:password`` separator, or the password
    is empty or not printable ASCII (it could not be sent on as a header).
    """
    if not authorization:
        return None

    scheme, _, encoded = authorization.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        return None

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None

    _, separator, password = decoded.partition(":")
    if not separator or not password:
        return None
    # The password is forwarded as an upstream header value.
    if not (password.isascii() and password.isprintable()):
        return None
    return password


def resolve_credential(
    headers: Mapping[str, str],
    fallback: Optional[str],
) -> Optional[str]:
    """
    Pick the credential to present upstream for a request with ``headers``.

    ``headers`` may be any mapping; Starlette's case-insensitive Headers is
    what the route handlers pass.
    """
    password = decode_basic_password(headers.get("authorization"))
    if password:
        logger.debug("Using credential from request basic auth")
        return password

    if fallback:
        logger.debug("Using configured fallback credential")
        return fallback

    logger.debug("No credential available, calling GitHub anonymously")
    return None
