"""
Session payload codec.

Sessions are stored as base64 text of their compact JSON form so the ``data``
column never sees characters its text handling could mangle.
"""

import base64
import binascii
import json
from typing import Any, Dict, Union

from sessionstore.core.exceptions import CodecError, InvalidSession


def encode(session: Dict[str, Any]) -> str:
    """
    Serialize a session object for storage.

    Raises:
        CodecError: If the session is not JSON serializable
    """
    try:
        text = json.dumps(session, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise CodecError(f"Session is not serializable: {e}") from e
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode(payload: Union[str, bytes]) -> Dict[str, Any]:
    """
    Parse a stored payload back into a session object.

    Raises:
        CodecError: If the payload is not valid base64, UTF-8 or a JSON object
    """
    if payload is None:
        raise CodecError("Session payload is empty")
    try:
        # Base64 produced by some databases is wrapped at 76 columns
        joiner = b"" if isinstance(payload, bytes) else ""
        raw = base64.b64decode(joiner.join(payload.split()), validate=True)
        session = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise CodecError(f"Malformed session payload: {e}") from e

    if not isinstance(session, dict):
        raise CodecError(
            f"Session payload decoded to {type(session).__name__}, expected object"
        )
    return session


def require_cookie(session: Dict[str, Any]) -> Dict[str, Any]:
    """Return the session's cookie metadata, raising InvalidSession if missing."""
    cookie = session.get("cookie")
    if not isinstance(cookie, dict):
        raise InvalidSession("Session has no cookie metadata")
    return cookie
