"""
HTTP client for the attendance backend.
"""
import logging
from typing import Any, Callable, Dict, Optional

import requests

from ..config.settings import DEFAULT_API_URL, API_PREFIX, REQUEST_TIMEOUT
from ..errors import ApiError, UnauthorizedError
from .cancellation import CancelToken

logger = logging.getLogger(__name__)

# Fallback messages when an error response has no usable body
STATUS_MESSAGES = {
    400: "Invalid request. Please check the information you entered.",
    401: "Unauthorized. Please log in again.",
    403: "You are not allowed to perform this action.",
    404: "The requested resource was not found.",
    500: "Server error. Please try again later.",
}


def error_from_response(response) -> ApiError:
    """
    Build an ApiError from a non-2xx response.

    The message is taken from the JSON body (``detail`` then ``message``),
    falling back to a status-keyed generic text.

    Args:
        response: requests.Response (or compatible) object

    Returns:
        ApiError: UnauthorizedError for 401, ApiError otherwise
    """
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = None

    message = None
    if isinstance(body, dict):
        message = body.get("detail") or body.get("message")
        if isinstance(message, list):
            # FastAPI validation errors arrive as a list of dicts
            message = "; ".join(
                str(item.get("msg", item)) if isinstance(item, dict) else str(item)
                for item in message
            )

    kind = "http" if message else "unparseable"
    if not message:
        message = STATUS_MESSAGES.get(status, f"Request failed (HTTP {status})")

    error_cls = UnauthorizedError if status == 401 else ApiError
    return error_cls(str(message), status=status, kind=kind)


class ApiClient:
    """
    Thin wrapper around a requests session.

    Attaches the bearer token to every authenticated call, applies the
    request timeout and turns failures into ApiError.
    """

    def __init__(self, base_url: str = DEFAULT_API_URL,
                 token_provider: Optional[Callable[[], Optional[str]]] = None,
                 session=None, timeout: float = REQUEST_TIMEOUT,
                 on_unauthorized: Optional[Callable[[], None]] = None):
        """
        Initialize the client.

        Args:
            base_url (str): Backend root URL, without the /api prefix
            token_provider (callable): Returns the current bearer token or None
            session: requests.Session compatible object
            timeout (float): Per-request timeout in seconds
            on_unauthorized (callable): Called when the backend answers 401
        """
        self._base_url = ""
        self.base_url = base_url
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.timeout = timeout
        self.on_unauthorized = on_unauthorized

    @property
    def base_url(self) -> str:
        return self._base_url

    @base_url.setter
    def base_url(self, value: str):
        self._base_url = (value or DEFAULT_API_URL).strip().rstrip("/")

    def url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self._base_url}{API_PREFIX}{path}"

    def _headers(self, auth: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if auth and self.token_provider is not None:
            token = self.token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(self, method: str, path: str, json: Any = None, data: Optional[dict] = None,
                files: Optional[dict] = None, params: Optional[dict] = None,
                auth: bool = True, cancel_token: Optional[CancelToken] = None) -> Any:
        """
        Send a request and return the decoded JSON body.

        Multipart bodies go through ``files``; the Content-Type header is
        left to requests so the boundary is set correctly.

        Returns:
            Decoded JSON, or None for empty bodies

        Raises:
            ApiError: Transport failure or non-2xx response
            RequestCancelled: The cancel token was triggered
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        logger.debug("%s %s", method, path)
        try:
            response = self.session.request(
                method,
                self.url(path),
                headers=self._headers(auth),
                json=json,
                data=data,
                files=files,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(f"Could not reach the server: {e}", status=None, kind="network") from e

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        if not response.ok:
            error = error_from_response(response)
            logger.warning("%s %s -> HTTP %s: %s", method, path, error.status, error.message)
            if isinstance(error, UnauthorizedError) and self.on_unauthorized is not None:
                self.on_unauthorized()
            raise error

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Unexpected response from server.",
                           status=response.status_code, kind="unparseable") from e

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)
