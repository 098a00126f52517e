"""
Cancellation tokens for requests whose results may go stale.
"""
import threading
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from ..errors import RequestCancelled


class CancelToken:
    """Flag checked by the API client before sending and before returning."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled()


class RequestScope:
    """
    Issues one live token per dependency set.

    Starting a new request for a view cancels the token of the previous
    one, so a slow response for an old filter or course can never
    overwrite the state produced by a newer request.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._key: Optional[Tuple[Hashable, ...]] = None
        self._token: Optional[CancelToken] = None

    def begin(self, *key: Hashable) -> CancelToken:
        """
        Start a request for the given dependency values.

        Args:
            *key: Values the request depends on (course id, filters, ...)

        Returns:
            CancelToken: Token for the new request
        """
        with self._lock:
            if self._token is not None:
                self._token.cancel()
            self._key = tuple(key)
            self._token = CancelToken()
            return self._token

    def cancel(self) -> None:
        with self._lock:
            if self._token is not None:
                self._token.cancel()
            self._token = None
            self._key = None

    @property
    def current_key(self) -> Optional[Tuple[Hashable, ...]]:
        return self._key

    def is_current(self, token: CancelToken) -> bool:
        with self._lock:
            return token is self._token and not token.cancelled


class ViewCache:
    """
    Results of the requests made by the page currently shown.

    A result is reused only while the user stays on the page that loaded
    it. Entering another page cancels every request still in flight and
    drops all results, so each page visit fetches fresh data.
    """

    def __init__(self):
        self.page: Optional[str] = None
        self._results: Dict[str, Tuple[Tuple[Hashable, ...], Any]] = {}
        self._scopes: Dict[str, RequestScope] = {}

    def enter(self, page: str) -> None:
        """Switch to ``page``; a different page starts with an empty cache."""
        if page == self.page:
            return
        for scope in self._scopes.values():
            scope.cancel()
        self._results.clear()
        self.page = page

    def load(self, name: str, key: Tuple[Hashable, ...],
             loader: Callable[[CancelToken], Any]) -> Any:
        """
        Return the result for ``name`` and ``key``, calling ``loader`` when needed.

        Args:
            name (str): Data set name, e.g. ``course_history``
            key (tuple): Values the data depends on
            loader: Called with the cancel token of the new request

        Returns:
            The loaded data, or None if a newer request cancelled this one

        Raises:
            PortalError: The loader failed; nothing is stored
        """
        key = tuple(key)
        entry = self._results.get(name)
        if entry is not None and entry[0] == key:
            return entry[1]

        scope = self._scopes.setdefault(name, RequestScope())
        token = scope.begin(*key)
        try:
            data = loader(token)
        except RequestCancelled:
            return None
        if scope.is_current(token):
            self._results[name] = (key, data)
        return data

    def invalidate(self, *names: str) -> None:
        for name in names:
            self._results.pop(name, None)

    def clear(self) -> None:
        self._results.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._results
