"""Login and client version check run before talking to the service."""

from typing import Any

from packaging.version import Version

from .client import WidgetServiceClient
from .core.errors import LocalPreconditionError, TransportFailure
from .core.types import Config


def check_login_and_version(config: Config, client: WidgetServiceClient, version: str) -> dict[str, Any]:
    """Ask the service about the logged-in client and the supported CLI versions.

    The answer is stored in ``config["info"]`` (never persisted).

    Raises:
        LocalPreconditionError: If the credentials are rejected or this
            version is older than the minimum the service accepts
        TransportFailure: On any other request failure
    """
    try:
        info = client.get("reflect/cli") or {}
    except TransportFailure as e:
        if e.status_code == 401:
            raise LocalPreconditionError("Not logged in", cause=e) from e
        raise

    min_version = info.get("minVersion")
    if min_version and Version(version) < Version(min_version):
        raise LocalPreconditionError(
            f"Incompatible CLI version: please upgrade widget-sync to version {min_version} at least"
        )

    config["info"] = info
    return info


def has_scope(info: dict[str, Any], scope: str) -> bool:
    """Tell whether the client was granted a scope such as ``Widget.global``.

    Granted scopes may use ``*`` as the last component (``Widget.*``).
    """
    resource = scope.split(".", 1)[0]
    for granted in info.get("scopes") or []:
        if granted in (scope, f"{resource}.*", "*"):
            return True
    return False
