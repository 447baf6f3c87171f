"""Taxonomía de errores del dispatcher.

Por qué un módulo propio:
- Los cuatro tipos cruzan capas (el cliente HTTP lanza `RemoteApiError` y
  `TransportError`; el dispatcher lanza `UnknownMethod` e `InvalidParams`).
- Cada error sabe describirse (`to_payload`) y el dispatcher es el único que
  lo convierte en sobre de fallo.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from pydantic import ValidationError


class DispatchError(Exception):
    """Base de los errores que llegan al borde del dispatch."""

    kind = "DispatchError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def data(self) -> dict[str, Any]:
        return {}

    def to_payload(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "data": self.data()}


class UnknownMethod(DispatchError):
    kind = "UnknownMethod"

    def __init__(self, method: str) -> None:
        super().__init__(f"Unknown method: {method}")
        self.method = method

    def data(self) -> dict[str, Any]:
        return {"method": self.method}


@dataclass(frozen=True)
class Violation:
    """Un campo que no cumple el contrato de entrada.

    `reason`: `missing`, `wrong_type`, `unexpected` o `invalid`.
    """

    field: str
    reason: str
    message: str


_MISSING = {"missing", "missing_argument"}
_UNEXPECTED = {"extra_forbidden", "unexpected_keyword_argument"}


def _reason_for(error_type: str) -> str:
    if error_type in _MISSING:
        return "missing"
    if error_type in _UNEXPECTED:
        return "unexpected"
    if error_type.endswith("_type") or error_type.endswith("_parsing"):
        return "wrong_type"
    return "invalid"


def violations_from(exc: ValidationError) -> list[Violation]:
    out: list[Violation] = []
    for err in exc.errors(include_url=False):
        field = ".".join(str(part) for part in err.get("loc", ())) or "<params>"
        out.append(Violation(field=field, reason=_reason_for(err.get("type", "")), message=err.get("msg", "")))
    return out


class InvalidParams(DispatchError):
    kind = "InvalidParams"

    def __init__(self, method: str, violations: list[Violation]) -> None:
        fields = ", ".join(v.field for v in violations) or "<params>"
        super().__init__(f"Invalid params for {method}: {fields}")
        self.method = method
        self.violations = violations

    @classmethod
    def from_validation_error(cls, method: str, exc: ValidationError) -> "InvalidParams":
        return cls(method, violations_from(exc))

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.violations]

    def data(self) -> dict[str, Any]:
        return {"method": self.method, "violations": [asdict(v) for v in self.violations]}


class RemoteApiError(DispatchError):
    """La API respondió con un status fuera del rango 2xx."""

    kind = "RemoteApiError"

    def __init__(self, status: int, status_text: str, body: Any) -> None:
        super().__init__(f"Bitbucket API error: {status} {status_text}".rstrip())
        self.status = status
        self.status_text = status_text
        self.body = body

    def data(self) -> dict[str, Any]:
        return {"status": self.status, "status_text": self.status_text, "body": self.body}


class TransportError(DispatchError):
    """No hubo respuesta (conexión, DNS, timeout...)."""

    kind = "TransportError"

    def __init__(self, detail: str) -> None:
        super().__init__(f"Transport error: {detail}")
        self.detail = detail

    def data(self) -> dict[str, Any]:
        return {"detail": self.detail}
