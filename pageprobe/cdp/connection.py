"""
pageprobe/cdp/connection.py

Helpers for the DevTools HTTP target list (/json/list).
"""

from typing import Any

import requests

from pageprobe.config import Config
from pageprobe.utils.exceptions import CDPConnectionError, TargetNotFoundError
from pageprobe.utils.logger import get_logger

logger = get_logger(name=__name__)


def _http_base(remote_debugging_address: str) -> str:
    """Normalize "host:port" or "http://host:port/" to "http://host:port"."""
    address = remote_debugging_address.strip().rstrip("/")
    if not address.startswith(("http://", "https://")):
        address = f"http://{address}"
    return address


def _get_json(url: str, timeout: float) -> Any:
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except requests.RequestException as e:
        raise CDPConnectionError(f"Could not reach DevTools endpoint {url}: {e}") from e
    except ValueError as e:
        raise CDPConnectionError(f"DevTools endpoint {url} returned invalid JSON: {e}") from e


def list_page_targets(
    remote_debugging_address: str = Config.REMOTE_DEBUGGING_ADDRESS,
    timeout: float = Config.HTTP_TIMEOUT,
) -> list[dict[str, Any]]:
    """
    List the open page targets.

    Returns:
        Target descriptors from /json/list whose type is "page", in browser order.
    """
    data = _get_json(f"{_http_base(remote_debugging_address)}/json/list", timeout)
    if not isinstance(data, list):
        raise CDPConnectionError("DevTools /json/list response is not a list")
    return [target for target in data if isinstance(target, dict) and target.get("type") == "page"]


def get_page_ws_url(
    remote_debugging_address: str = Config.REMOTE_DEBUGGING_ADDRESS,
    target_id: str | None = None,
    timeout: float = Config.HTTP_TIMEOUT,
) -> str:
    """
    Resolve the websocket URL of a page target.

    Args:
        remote_debugging_address: DevTools address, e.g. "127.0.0.1:9222".
        target_id: Specific target to attach to; the first page when omitted.
        timeout: HTTP timeout in seconds.

    Returns:
        The page's webSocketDebuggerUrl.

    Raises:
        TargetNotFoundError: If no matching page exposes a debugger URL.
    """
    for target in list_page_targets(remote_debugging_address, timeout):
        if target_id is not None and target.get("id") != target_id:
            continue
        ws_url = target.get("webSocketDebuggerUrl")
        if ws_url:
            logger.debug("Resolved page target %s (%s)", target.get("id"), target.get("url"))
            return ws_url

    if target_id is not None:
        raise TargetNotFoundError(f"No page target with id {target_id} at {remote_debugging_address}")
    raise TargetNotFoundError(f"No attachable page target at {remote_debugging_address}")
