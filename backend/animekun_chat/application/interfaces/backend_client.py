"""Port for the NestJS admin backend that owns the anime/manga database."""

from abc import ABC, abstractmethod
from typing import Any


class BackendClient(ABC):
    """Authenticated REST access to the admin backend.

    Implementations forward the caller's bearer token on every call and
    raise ``BackendAPIError`` for any non-2xx response.
    """

    @abstractmethod
    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Args:
            method: HTTP verb (GET, POST, PUT, PATCH, DELETE).
            endpoint: Path relative to the backend base URL, e.g. ``/api/seasons``.
            params: Query-string parameters; ``None`` values are dropped.
            body: JSON body for mutating verbs.

        Returns:
            The decoded JSON body, or ``None`` for empty responses.
        """
        ...

    @abstractmethod
    async def upload_file(
        self,
        endpoint: str,
        *,
        filename: str,
        content: bytes,
        content_type: str,
        fields: dict[str, str] | None = None,
    ) -> Any:
        """Send a multipart/form-data upload and return the decoded JSON body."""
        ...
