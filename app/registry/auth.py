from __future__ import annotations

import uuid

from flask import current_app, g, request

from app.registry.errors import Unauthenticated


def load_current_principal() -> None:
    """
    Loads g.principal from the configured header.
    Identity proof (signatures, tokens) happens upstream; this layer only trusts the header.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    if request.path.startswith(("/health", "/healthz")):
        g.principal = None
        return

    header = current_app.config.get("PRINCIPAL_HEADER") or "X-Principal"
    principal = (request.headers.get(header) or "").strip()
    g.principal = principal or None


def current_principal() -> str:
    p = getattr(g, "principal", None)
    if not p:
        raise Unauthenticated("Missing principal header.")
    return p
