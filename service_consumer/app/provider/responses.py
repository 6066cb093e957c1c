"""
Decoding of provider response bodies.

Provider bodies are untrusted. Decoding never raises: the result is either a
``ParsedBody`` carrying the JSON value or a ``ParseFailure`` carrying the raw
text, and callers branch on the variant.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class ParsedBody:
    """Body decoded as JSON."""
    payload: Any
    status_code: int = 200

    def as_object(self) -> Dict[str, Any]:
        """The payload when it is a JSON object, else an empty dict."""
        return self.payload if isinstance(self.payload, dict) else {}


@dataclass(frozen=True)
class ParseFailure:
    """Body that is not valid JSON."""
    raw: str
    error: str
    status_code: int = 200


ProviderBody = Union[ParsedBody, ParseFailure]


def decode_body(text: str, status_code: int = 200) -> ProviderBody:
    """Decode a provider response body into a tagged result."""
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as e:
        return ParseFailure(raw=text or "", error=str(e), status_code=status_code)
    return ParsedBody(payload=payload, status_code=status_code)
