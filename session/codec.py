"""
JSON encoding of session payloads.

Decoding never raises: a stored payload that is not valid JSON, or is not
a JSON object, yields a failed ``DecodeResult`` that the store treats as
"no session".
"""

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of decoding a stored payload.
    
    Attributes:
        session: The decoded session mapping, or None if decoding failed.
        error: Why decoding failed, or None on success.
    """
    session: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    
    @property
    def ok(self) -> bool:
        return self.error is None


def _default(value: Any) -> Any:
    # Cookie "expires" is commonly a datetime
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_session(session: dict[str, Any]) -> str:
    """
    Serialize a session mapping to compact JSON.
    
    Raises:
        TypeError: If the session holds values JSON cannot represent.
        ValueError: If the session contains a circular reference.
    """
    return json.dumps(session, separators=(",", ":"), default=_default)


def decode_session(payload: Any) -> DecodeResult:
    """Decode a stored payload into a session mapping."""
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            return DecodeResult(error=f"payload is not UTF-8: {e}")
    
    if not isinstance(payload, str):
        return DecodeResult(error=f"payload has unexpected type {type(payload).__name__}")
    
    try:
        session = json.loads(payload)
    except json.JSONDecodeError as e:
        return DecodeResult(error=f"payload is not valid JSON: {e}")
    
    if not isinstance(session, dict):
        return DecodeResult(error=f"payload is a JSON {type(session).__name__}, not an object")
    
    return DecodeResult(session=session)
