"""HMAC-SHA256 request signing for Binance private endpoints.

The signature covers the exact query string that is sent, so the string is
built once and reused for both hashing and the request URL.
"""

import hashlib
import hmac
from typing import Any
from urllib.parse import quote, urlencode


def build_query_string(params: dict[str, Any]) -> str:
    """Serialize params in insertion order, skipping None, URL-encoding values."""
    return urlencode(
        [(key, value) for key, value in params.items() if value is not None],
        quote_via=quote,
    )


def sign_query(query: str, secret: str) -> str:
    """Hex HMAC-SHA256 of ``query`` keyed by ``secret``."""
    return hmac.new(secret.encode(), query.encode(), hashlib.sha256).hexdigest()


def build_signed_query(
    params: dict[str, Any],
    secret: str,
    timestamp: int,
    recv_window: int | None = None,
) -> str:
    """Append timestamp (and recvWindow), sign, and append the signature last.

    ``params`` is not modified; every call gets its own timestamp.
    """
    payload = dict(params)
    if recv_window is not None:
        payload["recvWindow"] = recv_window
    payload["timestamp"] = timestamp
    query = build_query_string(payload)
    return f"{query}&signature={sign_query(query, secret)}"
