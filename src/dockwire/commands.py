"""
Daemon operation handlers.

Each handler performs exactly one HTTP exchange through an ``httpx.Client``
whose transport opens a fresh connection per request. Operations without a
handler raise :class:`~dockwire.errors.UnsupportedOperationError`.
"""

import enum
from typing import Any, Callable, Dict

import httpx

from dockwire.errors import DaemonError, UnsupportedOperationError


class Operation(str, enum.Enum):
    """Every daemon operation the command layer knows about."""

    AUTH = "auth"
    INFO = "info"
    PING = "ping"
    VERSION = "version"
    PULL_IMAGE = "pull_image"
    PUSH_IMAGE = "push_image"
    SAVE_IMAGE = "save_image"
    CREATE_IMAGE = "create_image"
    SEARCH_IMAGES = "search_images"
    REMOVE_IMAGE = "remove_image"
    LIST_IMAGES = "list_images"
    INSPECT_IMAGE = "inspect_image"
    TAG_IMAGE = "tag_image"
    BUILD_IMAGE = "build_image"
    LIST_CONTAINERS = "list_containers"
    CREATE_CONTAINER = "create_container"
    START_CONTAINER = "start_container"
    INSPECT_CONTAINER = "inspect_container"
    REMOVE_CONTAINER = "remove_container"
    WAIT_CONTAINER = "wait_container"
    ATTACH_CONTAINER = "attach_container"
    LOG_CONTAINER = "log_container"
    COPY_FILE_FROM_CONTAINER = "copy_file_from_container"
    STOP_CONTAINER = "stop_container"
    KILL_CONTAINER = "kill_container"
    RESTART_CONTAINER = "restart_container"
    PAUSE_CONTAINER = "pause_container"
    UNPAUSE_CONTAINER = "unpause_container"
    CONTAINER_DIFF = "container_diff"
    TOP_CONTAINER = "top_container"
    COMMIT = "commit"
    EXEC_CREATE = "exec_create"
    EXEC_START = "exec_start"
    INSPECT_EXEC = "inspect_exec"
    EVENTS = "events"
    STATS = "stats"


def _check(response: httpx.Response) -> httpx.Response:
    if response.is_success:
        return response
    message = response.text
    if response.headers.get("content-type", "").startswith("application/json"):
        message = response.json().get("message", message)
    raise DaemonError(response.status_code, message)


def ping(http: httpx.Client) -> str:
    return _check(http.get("/_ping")).text


def version(http: httpx.Client) -> Dict[str, Any]:
    return _check(http.get("/version")).json()


def info(http: httpx.Client) -> Dict[str, Any]:
    return _check(http.get("/info")).json()


def list_images(http: httpx.Client, all: bool = False) -> list:
    return _check(http.get("/images/json", params={"all": int(all)})).json()


def inspect_image(http: httpx.Client, name: str) -> Dict[str, Any]:
    return _check(http.get(f"/images/{name}/json")).json()


def list_containers(http: httpx.Client, all: bool = False) -> list:
    return _check(http.get("/containers/json", params={"all": int(all)})).json()


def inspect_container(http: httpx.Client, container_id: str) -> Dict[str, Any]:
    return _check(http.get(f"/containers/{container_id}/json")).json()


def start_container(http: httpx.Client, container_id: str) -> None:
    _check(http.post(f"/containers/{container_id}/start"))


def stop_container(http: httpx.Client, container_id: str, timeout: int = 10) -> None:
    _check(http.post(f"/containers/{container_id}/stop", params={"t": timeout}))


def kill_container(http: httpx.Client, container_id: str, signal: str = "SIGKILL") -> None:
    _check(http.post(f"/containers/{container_id}/kill", params={"signal": signal}))


def remove_container(
    http: httpx.Client, container_id: str, force: bool = False, volumes: bool = False
) -> None:
    params = {"force": int(force), "v": int(volumes)}
    _check(http.delete(f"/containers/{container_id}", params=params))


def wait_container(http: httpx.Client, container_id: str) -> int:
    return _check(http.post(f"/containers/{container_id}/wait")).json()["StatusCode"]


HANDLERS: Dict[Operation, Callable[..., Any]] = {
    Operation.PING: ping,
    Operation.VERSION: version,
    Operation.INFO: info,
    Operation.LIST_IMAGES: list_images,
    Operation.INSPECT_IMAGE: inspect_image,
    Operation.LIST_CONTAINERS: list_containers,
    Operation.INSPECT_CONTAINER: inspect_container,
    Operation.START_CONTAINER: start_container,
    Operation.STOP_CONTAINER: stop_container,
    Operation.KILL_CONTAINER: kill_container,
    Operation.REMOVE_CONTAINER: remove_container,
    Operation.WAIT_CONTAINER: wait_container,
}


def get_handler(operation: Operation) -> Callable[..., Any]:
    """Look up the handler for ``operation``.

    Raises:
        UnsupportedOperationError: If the operation has no handler.
    """
    try:
        return HANDLERS[Operation(operation)]
    except (KeyError, ValueError):
        raise UnsupportedOperationError(str(getattr(operation, "value", operation))) from None
