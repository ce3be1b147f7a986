"""
Client identity resolution.

With trust_proxy enabled the left-most X-Forwarded-For address (the
original client as seen by the first proxy) wins; otherwise the transport
peer address is used.
"""

from typing import Any, Mapping

UNKNOWN_CLIENT = "unknown"


def _header(scope: Mapping[str, Any], name: bytes) -> str:
    for key, value in scope.get("headers", []):
        if key.lower() == name:
            return value.decode("latin-1")
    return ""


def resolve_client_ip(scope: Mapping[str, Any], trust_proxy: bool) -> str:
    if trust_proxy:
        forwarded = _header(scope, b"x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    client = scope.get("client")
    if client:
        return client[0]
    return UNKNOWN_CLIENT
