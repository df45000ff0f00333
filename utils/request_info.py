"""
Client metadata recorded with refresh tokens.

The device descriptor is "<user-agent> (<ip>)", or just "<ip>" when the
request carries no user agent.
"""
from __future__ import annotations

from flask import request


def normalize_ip(ip: str | None) -> str:
    if not ip:
        return "unknown"
    first = ip.split(",")[0].strip()
    if first == "::1":
        return "127.0.0.1"
    if first.startswith("::ffff:"):
        return first[len("::ffff:"):]
    return first or "unknown"


def get_client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return normalize_ip(forwarded)
    return normalize_ip(request.remote_addr)


def get_device_info() -> str:
    ip_address = get_client_ip()
    user_agent = (request.headers.get("User-Agent") or "").strip()
    return f"{user_agent} ({ip_address})" if user_agent else ip_address
