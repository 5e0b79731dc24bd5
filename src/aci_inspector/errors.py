"""
Inspector error types.

Every failure coming out of the transport or the contract validator is an
ApiClientError tagged with one of four kinds: network, http, parse, contract.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from aci_inspector.models.interaction import InteractionResult

NETWORK = "network"
HTTP = "http"
PARSE = "parse"
CONTRACT = "contract"


class ApiClientError(Exception):
    def __init__(self, kind: str, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.body = body


class NetworkError(ApiClientError):
    def __init__(self, message: str):
        super().__init__(NETWORK, message)


class HttpError(ApiClientError):
    def __init__(self, message: str, status: int, body: Optional[str] = None):
        super().__init__(HTTP, message, status=status, body=body)


class ParseError(ApiClientError):
    def __init__(self, message: str, body: Optional[str] = None):
        super().__init__(PARSE, message, body=body)


class ContractError(ApiClientError):
    def __init__(self, message: str):
        super().__init__(CONTRACT, message)


class SessionError(Exception):
    """No usable session or agent to talk to."""


class InteractionBusyError(Exception):
    """Raised when a run is requested while another one is in progress."""


class InteractionError(Exception):
    """The backend answered the interaction with success=false."""

    def __init__(self, message: str, result: "InteractionResult"):
        super().__init__(message)
        self.result = result


def describe_error(exc: BaseException) -> str:
    """User-facing phrasing for an error, chosen by its kind."""
    if isinstance(exc, ApiClientError):
        if exc.kind == NETWORK:
            return f"Backend unreachable. {exc}"
        if exc.kind == HTTP:
            return f"Backend rejected the request. {exc}"
        if exc.kind == PARSE:
            return f"Backend sent an unreadable response. {exc}"
        if exc.kind == CONTRACT:
            return f"Backend response did not match the expected shape. {exc}"
    return str(exc) or exc.__class__.__name__
