"""Utilitários de cliente HTTP para testes de rota FastAPI.

Usa httpx + ASGITransport direto no event loop do teste, sem
``fastapi.testclient.TestClient``: a sessão SQLite dos testes pertence
ao mesmo loop.
"""

from __future__ import annotations

from typing import Optional

import httpx

from app.core.security import create_access_token


def make_asgi_client(app) -> httpx.AsyncClient:
    """Cria cliente HTTP assíncrono para uma app FastAPI usando ASGITransport."""
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        follow_redirects=True,
    )


def auth_headers(user, token: Optional[str] = None) -> dict[str, str]:
    """Header Bearer com um token emitido para ``user``."""
    if token is None:
        token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}
