"""
httpx binding of the Transport interface.
"""

import time

import httpx

from ..auth.tokens import AuthProvider
from ..exceptions import RemoteOperationError
from ..observability.logging import get_logger
from ..observability.metrics import get_metrics_collector
from ..observability.tracing import inject_context
from .base import ContentType, Request, Response, Transport

log = get_logger("swr.transport")


class HttpxTransport(Transport):
    """Sends requests on a shared ``httpx.AsyncClient`` configured with the base URL."""

    def __init__(self, client: httpx.AsyncClient, auth: AuthProvider | None = None):
        self._client = client
        self.auth = auth

    async def send(self, request: Request) -> Response:
        headers = dict(request.headers)
        if request.authenticated and self.auth is not None:
            headers.update(await self.auth.get_auth_header())
        inject_context(headers)

        kwargs = self._encode_body(request, headers)
        if request.timeout is not None:
            kwargs["timeout"] = request.timeout
        query = {k: v for k, v in (request.query or {}).items() if v is not None}

        metrics = get_metrics_collector()
        start = time.perf_counter()
        try:
            response = await self._client.request(
                request.method, request.url, params=query or None, headers=headers, **kwargs
            )
        except httpx.TransportError as e:
            metrics.record_request(request.method, request.path, None, time.perf_counter() - start)
            log.warning(
                "Control plane unreachable",
                method=request.method,
                path=request.path,
                error=str(e),
            )
            raise RemoteOperationError(None, str(e), f"Request failed: {e}") from e

        duration = time.perf_counter() - start
        metrics.record_request(request.method, request.path, response.status_code, duration)
        log.debug(
            "Control plane call",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            ms=duration * 1000,
        )

        if not response.is_success:
            log.warning(
                "Control plane rejected request",
                method=request.method,
                path=request.path,
                status_code=response.status_code,
            )
            raise RemoteOperationError(response.status_code, response.text)

        return Response(response.status_code, response.text, dict(response.headers))

    @staticmethod
    def _encode_body(request: Request, headers: dict[str, str]) -> dict:
        if request.body is None:
            return {}
        if request.content_type is ContentType.FORM:
            headers["Content-Type"] = ContentType.FORM.value
            return {"data": request.body}
        if request.content_type is ContentType.JSON:
            return {"json": request.body}
        return {"content": request.body}

    async def close(self) -> None:
        """Close the control-plane pool and the auth provider it was built with."""
        await self._client.aclose()
        if self.auth is not None:
            await self.auth.close()
