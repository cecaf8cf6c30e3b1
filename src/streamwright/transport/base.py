"""
Transport interface: the single seam through which every control-plane call goes.

Concrete bindings implement ``send``; callers use ``execute`` or ``get_json``.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import quote

from ..exceptions import RemoteOperationError, ValidationError

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class ContentType(str, Enum):
    FORM = "application/x-www-form-urlencoded"
    JSON = "application/json"


@dataclass
class Request:
    """An outbound request. ``path`` may be a template like ``/apps/{type}/{name}``."""

    method: str
    path: str
    path_params: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    content_type: ContentType | None = None
    authenticated: bool = True
    timeout: float | None = None

    @property
    def url(self) -> str:
        return resolve_path(self.path, self.path_params)


@dataclass
class Response:
    status_code: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        """Parsed body, or None for an empty body."""
        if not self.body or not self.body.strip():
            return None
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise RemoteOperationError(
                self.status_code, self.body, f"Control plane returned invalid JSON: {e}"
            ) from e


def resolve_path(template: str, params: dict[str, Any] | None = None) -> str:
    """Substitute ``{placeholders}``; each value is quoted as one path segment."""
    params = params or {}

    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in params or params[key] is None:
            raise ValidationError(f"Missing path parameter '{key}' for {template}")
        return quote(str(params[key]), safe="")

    return _PLACEHOLDER.sub(substitute, template)


class Transport(ABC):
    """Executes requests and returns raw responses. Non-2xx raises RemoteOperationError."""

    @abstractmethod
    async def send(self, request: Request) -> Response:
        """Send one request. No retries."""

    async def close(self) -> None:
        """Release underlying resources."""

    async def execute(
        self,
        method: str,
        path: str,
        path_params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        body: Any = None,
        *,
        content_type: ContentType | None = None,
        query: dict[str, Any] | None = None,
        authenticated: bool = True,
        timeout: float | None = None,
    ) -> Response:
        return await self.send(
            Request(
                method=method.upper(),
                path=path,
                path_params=path_params or {},
                query=query,
                headers=headers or {},
                body=body,
                content_type=content_type,
                authenticated=authenticated,
                timeout=timeout,
            )
        )

    async def get_json(
        self,
        path: str,
        path_params: dict[str, Any] | None = None,
        query: dict[str, Any] | None = None,
    ) -> Any:
        response = await self.execute(
            "GET", path, path_params, headers={"Accept": "application/json"}, query=query
        )
        return response.json()
