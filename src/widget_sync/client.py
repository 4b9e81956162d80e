"""HTTP client for the widget service REST API.

API requests target ``https://<server>/a/<account>/api/v2/<path>`` and
carry the API client credentials stored in the config; requests to other
hosts (schema references, asset CDNs) are sent without them.
Failures are raised as TransportFailure, which tells a request that got no
answer apart from one the server rejected.
"""

from pathlib import Path
from typing import Any

import requests

from .core.errors import LocalPreconditionError, TransportFailure
from .core.types import Config

API_VERSION = "v2"
OK_STATUS = (200, 201)
DOWNLOAD_CHUNK_SIZE = 64 * 1024


class WidgetServiceClient:
    """Thin wrapper over requests for the widget service.

    Args:
        config: Credentials record (server, acct_id, user_id, secret)
        session: Session to use; a new one is created when omitted
        timeout: Seconds before a request is abandoned (None waits forever)
    """

    def __init__(self, config: Config, session: requests.Session | None = None, timeout: float | None = None):
        for key in ("server", "acct_id"):
            if not config.get(key):
                raise LocalPreconditionError(f"Config is missing '{key}', perform a login")
        self.config = config
        self.session = session or requests.Session()
        self.auth = (config.get("user_id", ""), config.get("secret", ""))
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return f"https://{self.config['server']}/a/{self.config['acct_id']}/api/{API_VERSION}/"

    def url(self, path: str) -> str:
        return self.base_url + path.lstrip("/")

    def _send(
        self, method: str, url: str, ok_status: tuple[int, ...], authenticated: bool = True, **kwargs: Any
    ) -> requests.Response:
        # Credentials only ever go to the service API itself
        auth = self.auth if authenticated and url.startswith(self.base_url) else None
        try:
            response = self.session.request(method, url, timeout=self.timeout, auth=auth, **kwargs)
        except requests.RequestException as e:
            raise TransportFailure(f"{method} {url} failed: {e}", original_error=e) from e

        if response.status_code not in ok_status:
            raise TransportFailure(
                f"{method} {url} failed with status {response.status_code}",
                response=response,
                body=_parse_body(response),
            )
        return response

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        ok_status: tuple[int, ...] = OK_STATUS,
    ) -> Any:
        """Send a JSON request and return the parsed body (None when empty).

        Raises:
            TransportFailure: On connection errors or unexpected status codes
        """
        kwargs: dict[str, Any] = {"params": params}
        if json is not None:
            kwargs["json"] = json
        response = self._send(method, self.url(path), ok_status, **kwargs)
        return _parse_body(response)

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, params: dict[str, Any] | None = None) -> Any:
        return self.request("POST", path, params=params, json=json)

    def put(self, path: str, json: Any = None, params: dict[str, Any] | None = None) -> Any:
        return self.request("PUT", path, params=params, json=json)

    def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("DELETE", path, params=params)

    def upload(self, path: str, file_path: Path, params: dict[str, Any]) -> Any:
        """Upload a file as multipart form data (field ``file``).

        Args:
            path: Upload endpoint, relative to the API root
            file_path: Local file to send; it is streamed, not loaded
            params: Query parameters, including the remote ``id``

        Returns:
            Parsed JSON answer (the stored asset record)
        """
        file_path = Path(file_path)
        with file_path.open("rb") as f:
            response = self._send(
                "POST",
                self.url(path),
                (200,),
                params=params,
                files={"file": (file_path.name, f)},
            )
        return _parse_body(response)

    def download(self, url: str, destination: Path) -> Path:
        """Stream a remote file to disk.

        ``url`` may be absolute or relative to the API root. Credentials are
        only sent when the URL points into the API.
        """
        if not url.startswith(("http://", "https://")):
            url = self.url(url)
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)

        response = self._send("GET", url, (200,), stream=True)
        with response, destination.open("wb") as f:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                f.write(chunk)
        return destination

    def fetch_schema(self, name: str) -> dict[str, Any]:
        """Get a JSON schema published by the service."""
        return self.get(f"schemas/{name}")  # type: ignore[no-any-return]

    def retrieve(self, uri: str) -> dict[str, Any]:
        """Resolve a schema ``$ref`` URI to its JSON. Sent without credentials."""
        response = self._send("GET", uri, (200,), authenticated=False)
        return _parse_body(response)  # type: ignore[no-any-return]


def scope_params(global_scope: bool, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """Add the global scope toggle to a query."""
    params = dict(params or {})
    if global_scope:
        params["global"] = "true"
    return params


def _parse_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
