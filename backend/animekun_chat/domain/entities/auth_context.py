"""Caller identity forwarded to the backend."""

from dataclasses import dataclass

ANONYMOUS_USER_ID = "anonymous"


@dataclass(frozen=True)
class AuthContext:
    """Bearer token and user identifier of the current request.

    The token is forwarded verbatim to every backend call. It is never
    decoded here: the backend validates it.
    """

    token: str
    user_id: str = ANONYMOUS_USER_ID

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.token}"
