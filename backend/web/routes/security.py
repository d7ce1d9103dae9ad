"""
Shared web security helpers (FastAPI-agnostic utilities for routes).

Contains the CSRF same-origin check used by the admin form posts and logout.
"""
from __future__ import annotations

import os
from urllib.parse import urlparse

from fastapi import Request


def _default_port(scheme: str) -> int:
    return 443 if scheme == "https" else 80


def _parse_origin(url: str) -> tuple[str, str, int]:
    p = urlparse(url)
    if not p.scheme or not p.hostname:
        raise ValueError("invalid_origin")
    scheme = p.scheme.lower()
    port = p.port if p.port is not None else _default_port(scheme)
    return scheme, p.hostname.lower(), int(port)


def _parse_server(request: Request) -> tuple[str, str, int]:
    trust_proxy = (os.getenv("PHENOFARM_TRUST_PROXY", "false") or "").lower() == "true"
    if trust_proxy:
        xf_proto = (request.headers.get("x-forwarded-proto") or request.url.scheme or "").split(",")[0].strip()
        xf_host = (request.headers.get("x-forwarded-host") or request.headers.get("host") or "").split(",")[0].strip()
        scheme = (xf_proto or request.url.scheme or "http").lower()
        if ":" in xf_host:
            host_only, port_str = xf_host.rsplit(":", 1)
            host = host_only.lower()
            port = int(port_str) if port_str.isdigit() else _default_port(scheme)
        else:
            host = (xf_host or (request.url.hostname or "")).lower()
            port = int(request.url.port) if request.url.port else _default_port(scheme)
        xf_port = (request.headers.get("x-forwarded-port") or "").split(",")[0].strip()
        if xf_port:
            port = int(xf_port) if xf_port.isdigit() else _default_port(scheme)
        return scheme, host, port

    scheme = (request.url.scheme or "http").lower()
    host = (request.url.hostname or "").lower()
    port = int(request.url.port) if request.url.port else _default_port(scheme)
    return scheme, host, port


def _is_same_origin(request: Request) -> bool:
    """Verify same-origin using Origin or Referer headers.

    Behavior:
    - If Origin is present, require exact scheme/host/port match with server.
    - Else if Referer is present, validate its origin similarly.
    - Else (no headers): allow to not break non-browser clients.
    Proxy awareness: Only trust X-Forwarded-* when PHENOFARM_TRUST_PROXY=true.
    """
    server = _parse_server(request)
    candidate = request.headers.get("origin") or request.headers.get("referer")
    if not candidate:
        return True
    try:
        return _parse_origin(candidate) == server
    except ValueError:
        return False
