"""Shared fixtures: widget directories and a fake HTTP session."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import pytest
import requests

from widget_sync.client import WidgetServiceClient
from widget_sync.core.types import Config

API_MARKER = "/api/v2/"


def make_response(status: int, data: Any = None, content: bytes | None = None) -> requests.Response:
    """Build a real requests.Response with a preloaded body."""
    response = requests.Response()
    response.status_code = status
    if content is None:
        content = b"" if data is None else json.dumps(data).encode("utf-8")
    response._content = content
    response._content_consumed = True
    response.encoding = "utf-8"
    return response


@dataclass
class Call:
    method: str
    path: str
    kwargs: dict[str, Any] = field(default_factory=dict)

    @property
    def params(self) -> dict[str, Any]:
        return self.kwargs.get("params") or {}

    @property
    def json(self) -> Any:
        return self.kwargs.get("json")


class FakeSession:
    """Stand-in for requests.Session answering from a route table.

    Routes are keyed by (method, path below /api/v2/ or full URL). Each
    route holds a queue of answers; the last one is repeated. An answer is
    a Response, an exception to raise, or a callable building a Response.
    Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.calls: list[Call] = []

    def add(self, method: str, path: str, *answers: Any) -> None:
        self.routes.setdefault((method, path), []).extend(answers)

    def add_json(self, method: str, path: str, data: Any, status: int = 200) -> None:
        self.add(method, path, make_response(status, data))

    def request(self, method: str, url: str, timeout: Any = None, **kwargs: Any) -> requests.Response:
        path = url.split(API_MARKER, 1)[1] if API_MARKER in url else url
        self.calls.append(Call(method, path, kwargs))
        queue = self.routes.get((method, path))
        if not queue:
            return make_response(404, {"message": "not found"})
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            return answer(method, url, **kwargs)
        return answer

    def calls_to(self, method: str, prefix: str = "") -> list[Call]:
        return [c for c in self.calls if c.method == method and c.path.startswith(prefix)]


def upload_echo(widget_id: str) -> Callable[..., requests.Response]:
    """Upload answer echoing the requested id like the service does."""

    def _answer(method: str, url: str, **kwargs: Any) -> requests.Response:
        remote_id = kwargs["params"]["id"]
        data = kwargs["files"]["file"][1].read()
        return make_response(
            200,
            {"id": f"widgets/{widget_id}/{remote_id}", "type": "application/octet-stream", "size": len(data)},
        )

    return _answer


@pytest.fixture
def config() -> Config:
    return Config(server="world.example.com", acct_id="acme", user_id="client-1", secret="s3cret")


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(config: Config, session: FakeSession) -> WidgetServiceClient:
    return WidgetServiceClient(config, session=session)  # type: ignore[arg-type]


def write_files(root: Path, files: dict[str, bytes | str]) -> Path:
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        target.write_bytes(content)
    return root


@pytest.fixture
def widget_dir(tmp_path: Path) -> Path:
    """A complete widget directory (manifest, strings and assets)."""
    root = tmp_path / "popup1"
    write_files(
        root,
        {
            "main.html": "<div>{{NAME}}</div>",
            "main.scss": ".popup { color: red; }",
            "thumbnail.png": b"\x89PNG fake",
            "assets/sub/icon.png": b"\x89PNG icon",
            "assets/.hidden": "skip me",
        },
    )
    (root / "manifest.json").write_text(
        json.dumps({"id": "popup1", "type": "engagement", "acct_id": "acme", "version": 3, "draft": False})
    )
    (root / "strings.json").write_text(
        json.dumps(
            [
                {"id": "NAME", "values": {"en": {"value": "Popup", "state": "final"}}},
                {"id": "DESCRIPTION", "values": {"en": {"value": "A popup", "state": "final"}}},
            ]
        )
    )
    return root
