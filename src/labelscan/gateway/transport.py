from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from ..errors import UpstreamError
from ..logging import get_logger

LOG = get_logger("gateway-transport")

BODY_PREVIEW_CHARS = 500


def post_json(
    session: requests.Session,
    url: str,
    payload: Dict[str, Any],
    *,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, str]] = None,
    timeout: int,
    label: str,
) -> requests.Response:
    """POST a JSON body once; transport failures become UpstreamError.

    The response is returned whatever its status, status handling belongs
    to the caller.
    """
    try:
        resp = session.post(url, headers=headers, params=params, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        LOG.error("%s request failed: %s", label, exc)
        raise UpstreamError(f"{label} request failed", details=str(exc)) from exc
    LOG.debug("%s HTTP %s", label, resp.status_code)
    return resp


def response_json(resp: requests.Response) -> Optional[Any]:
    """Decoded JSON body or None when the body is not JSON."""
    try:
        return resp.json()
    except ValueError:
        return None


def is_success(resp: requests.Response) -> bool:
    return 200 <= resp.status_code < 300
