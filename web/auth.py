"""Bearer token extraction for the admin API.

Tokens are verified by ``CredentialGate`` inside each admin operation; this
module only pulls the raw token out of the ``Authorization`` header.
"""

from __future__ import annotations

from typing import Optional

from flask import request

BEARER_PREFIX = "bearer "


def parse_bearer(header: Optional[str]) -> Optional[str]:
    """Token from an ``Authorization: Bearer <token>`` header value.

    Returns None for a missing header, a different scheme or an empty token,
    all of which the gate treats as unauthenticated.
    """
    if not header:
        return None
    if header[:len(BEARER_PREFIX)].lower() != BEARER_PREFIX:
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def bearer_token() -> Optional[str]:
    return parse_bearer(request.headers.get("Authorization"))
