"""
In-memory stand-ins for requests objects, used by the test scripts.
"""
import json as jsonlib
from typing import Any, Dict, List, Optional


class FakeResponse:
    """Minimal requests.Response look-alike."""

    def __init__(self, status_code: int = 200, body: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._body = body
        if text is not None:
            self.text = text
        elif body is None:
            self.text = ""
        else:
            self.text = jsonlib.dumps(body)
        self.content = self.text.encode("utf-8")

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeSession:
    """
    Records every call and answers from a route table.

    Routes map ``"METHOD /path"`` (the path after the /api prefix) to a
    FakeResponse, an exception instance to raise, or a callable taking
    the call record and returning one of those.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None, default: Any = None):
        self.routes = dict(routes or {})
        self.default = default if default is not None else FakeResponse(404, {"detail": "Not found"})
        self.calls: List[Dict[str, Any]] = []

    def _answer(self, method: str, url: str, kwargs: Dict[str, Any]):
        path = url.split("/api", 1)[1] if "/api" in url else url
        call = dict(kwargs, method=method, url=url, path=path)
        self.calls.append(call)

        answer = self.routes.get(f"{method} {path}", self.default)
        if callable(answer) and not isinstance(answer, FakeResponse):
            answer = answer(call)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def request(self, method: str, url: str, **kwargs):
        return self._answer(method, url, kwargs)

    def post(self, url: str, **kwargs):
        return self._answer("POST", url, kwargs)

    def calls_to(self, method: str, path: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and c["path"] == path]
