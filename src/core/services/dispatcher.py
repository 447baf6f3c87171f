"""Method dispatch over the operation catalog.

The dispatcher is the only place where the four error kinds are turned into
a failure envelope. Every dispatch is independent: the catalog is immutable
and the client holds no per-call state, so concurrent dispatches share
nothing mutable.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from core.catalog import OperationDescriptor, build_catalog
from core.domain.models import dump_remote
from core.errors import DispatchError, InvalidParams, UnknownMethod, Violation
from core.interfaces.client import SourceControlClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Envelope:
    """Outcome of one dispatched call: either `result` or `error`."""

    method: str
    ok: bool
    result: Any = None
    error: DispatchError | None = None

    @classmethod
    def success(cls, method: str, result: Any) -> "Envelope":
        return cls(method=method, ok=True, result=result)

    @classmethod
    def failure(cls, method: str, error: DispatchError) -> "Envelope":
        return cls(method=method, ok=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "result": self.result}
        assert self.error is not None
        return {"ok": False, "error": self.error.to_payload()}


class MethodDispatcher:
    """Validate -> invoke -> wrap, for one named method at a time."""

    def __init__(
        self,
        client: SourceControlClient,
        catalog: Mapping[str, OperationDescriptor] | None = None,
    ) -> None:
        self._client = client
        self._catalog = catalog if catalog is not None else build_catalog()

    @property
    def catalog(self) -> Mapping[str, OperationDescriptor]:
        return self._catalog

    def capabilities(self) -> list[str]:
        """Method names advertised by the server shell."""

        return list(self._catalog)

    def resolve(self, method: str) -> OperationDescriptor:
        try:
            return self._catalog[method]
        except KeyError:
            raise UnknownMethod(method) from None

    def validate(self, descriptor: OperationDescriptor, raw_params: Any) -> BaseModel:
        if raw_params is None:
            raw_params = {}
        if not isinstance(raw_params, dict):
            raise InvalidParams(
                descriptor.name,
                [Violation(field="<params>", reason="wrong_type", message="params must be an object")],
            )
        try:
            return descriptor.params_model.model_validate(raw_params)
        except ValidationError as exc:
            raise InvalidParams.from_validation_error(descriptor.name, exc) from exc

    async def dispatch(self, method: str, raw_params: Any = None) -> Envelope:
        """Run one call end to end; never raises for the known error kinds."""

        started = time.perf_counter()
        try:
            descriptor = self.resolve(method)
            params = self.validate(descriptor, raw_params)
            result = await descriptor.invoke(self._client, params)
        except DispatchError as exc:
            logger.debug("%s failed: %s", method, exc.kind)
            return Envelope.failure(method, exc)

        logger.debug("%s ok in %.1f ms", method, (time.perf_counter() - started) * 1000)
        return Envelope.success(method, dump_remote(result))
