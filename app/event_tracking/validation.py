"""
Request validators for the tracking endpoints.

Both validators are pure: they inspect the input and either return the
usable value or raise InvalidPayload.
"""

import json
import re
from typing import Any, Dict, Mapping, Optional, Union

from app.errors import InvalidPayload

_NON_WORD = re.compile(r"\W", re.ASCII)


def _compact(data: Any) -> str:
    """Serialize offending input the way it is echoed back to clients."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def _is_bounded(value: Any) -> bool:
    return isinstance(value, str) and 3 < len(value) < 16


def validate_write_request(body: Union[str, bytes, Mapping, None]) -> Dict[str, Any]:
    """Validate a POST /tracks body.

    Args:
        body: Raw request body or an already parsed mapping

    Returns:
        The parsed payload

    Raises:
        InvalidPayload: If the body is missing, unparsable or fails a field rule
    """
    if body is None or (isinstance(body, (str, bytes)) and not body.strip()):
        raise InvalidPayload("Missing post data")

    if isinstance(body, Mapping):
        data = dict(body)
    else:
        raw = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            raise InvalidPayload(f"Invalid post data {raw}")
        if not isinstance(data, dict):
            raise InvalidPayload(f"Invalid post data {raw}")

    uid = data.get("uid")
    action = data.get("action")
    item = data.get("data")

    uid_ok = _is_bounded(uid) and ":" not in uid
    action_ok = _is_bounded(action) and not _NON_WORD.search(action)
    item_ok = isinstance(item, dict) and bool(item.get("id"))

    if not (uid_ok and action_ok and item_ok):
        raise InvalidPayload(f"Invalid post data {_compact(data)}")

    return data


def validate_read_request(params: Optional[Mapping[str, Any]]) -> str:
    """Validate the parameters of a GET /users/... request.

    Returns:
        The requested uid
    """
    if params is None:
        raise InvalidPayload("Missing get params")

    uid = params.get("uid")
    if not isinstance(uid, str) or len(uid) <= 1:
        raise InvalidPayload(f"Missing uid param {_compact(dict(params))}")

    return uid
