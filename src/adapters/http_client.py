"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza base URL, timeouts, headers y autenticación en un solo sitio.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import base64

import httpx

from core.config import AppSettings
from core.domain.models import Credentials


def build_auth_header(credentials: Credentials | None) -> dict[str, str]:
    """`Authorization: Basic base64(identity:secret)`; vacío si no hay credenciales."""

    if credentials is None:
        return {}
    raw = f"{credentials.identity}:{credentials.secret.get_secret_value()}"
    token = base64.b64encode(raw.encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


def build_async_client(
    settings: AppSettings | None = None,
    *,
    credentials: Credentials | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` apuntando a la raíz de la API.

    Por qué un builder:
    - Todas las operaciones comparten base URL, timeout y cabeceras.
    - El header de auth se calcula una vez; las credenciales no cambian
      durante la vida del cliente.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    headers.update(build_auth_header(credentials))
    return httpx.AsyncClient(
        base_url=settings.api_base_url.rstrip("/"),
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        # Un request por llamada: un 3xx es un status no-2xx más.
        follow_redirects=False,
        headers=headers,
        transport=transport,
    )
