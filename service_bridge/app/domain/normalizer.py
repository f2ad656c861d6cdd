"""
Bridge response normalizer.

The bridge has answered in three shapes over time::

    {"ok": true, "text": "..."}
    {"text": "..."}
    {"data": {"name": "...", "text": "..."}}

Each field of the canonical record is read through an ordered list of paths;
the first path holding a non-null value wins. Success is the disjunction of
``ok``, ``text`` and ``data.text`` being truthy, which is how the bridge has
always signalled it, even though it lets ``ok: false`` through when text is
present.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from shared.errors import BridgeHtmlError, UpstreamFailureError, UpstreamShapeError

from service_bridge.app.adapters.bridge_client import BODY_PREVIEW_LIMIT, BridgeResponse
from service_bridge.app.domain.models import NormalizedRecord


Path = Tuple[str, ...]

TEXT_RULES: Sequence[Path] = (("data", "text"), ("text",))
NAME_RULES: Sequence[Path] = (("data", "name"), ("name",))
SUCCESS_SIGNALS: Sequence[Path] = (("ok",), ("text",), ("data", "text"))

KIND_HTTP = "http_status"
KIND_SHAPE = "shape"
KIND_HTML = "html"


@dataclass(frozen=True)
class NormalizationFailure:
    """Why a bridge answer could not become a record."""

    kind: str
    alias: str
    status: int
    reason: str
    content_type: str = ""
    body_preview: str = ""
    source: Dict[str, Any] = field(default_factory=dict)

    def to_error(self) -> UpstreamFailureError:
        if self.kind == KIND_HTML:
            return BridgeHtmlError(self.status, self.content_type, self.body_preview)
        if self.kind == KIND_SHAPE:
            return UpstreamShapeError(self.reason, status=self.status, source=self.source)
        return UpstreamFailureError(self.reason, status=self.status, source=self.source)


NormalizeResult = Union[NormalizedRecord, NormalizationFailure]


def is_json_media_type(content_type: Optional[str]) -> bool:
    """True for ``application/json`` and any ``+json`` structured suffix."""
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def lookup(payload: Any, path: Path) -> Any:
    node = payload
    for part in path:
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def first_present(payload: Any, rules: Sequence[Path]) -> Any:
    """Value at the first rule path that is not null."""
    for path in rules:
        value = lookup(payload, path)
        if value is not None:
            return value
    return None


def signals_success(payload: Any) -> bool:
    return any(lookup(payload, path) for path in SUCCESS_SIGNALS)


def parse_payload(text: str) -> Dict[str, Any]:
    """Decode a JSON object body; anything else reads as an empty object."""
    try:
        payload = json.loads(text)
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def normalize_payload(alias: str, payload: Dict[str, Any]) -> Optional[NormalizedRecord]:
    """Apply the extraction rules to an already-decoded body."""
    if not signals_success(payload):
        return None

    name = first_present(payload, NAME_RULES)
    text = first_present(payload, TEXT_RULES)
    return NormalizedRecord(
        alias=alias,
        name=None if name is None else str(name),
        text="" if text is None else str(text),
    )


def normalize_response(alias: str, response: BridgeResponse) -> NormalizeResult:
    """Turn a raw bridge answer into a record or a described failure."""
    if not is_json_media_type(response.content_type):
        return NormalizationFailure(
            kind=KIND_HTML,
            alias=alias,
            status=response.status_code,
            reason="bridge returned a non-JSON response",
            content_type=response.content_type,
            body_preview=response.preview(BODY_PREVIEW_LIMIT),
        )

    payload = parse_payload(response.text)
    if not response.ok:
        return NormalizationFailure(
            kind=KIND_HTTP,
            alias=alias,
            status=response.status_code,
            reason=f"bridge answered HTTP {response.status_code}",
            source=payload,
        )

    record = normalize_payload(alias, payload)
    if record is None:
        return NormalizationFailure(
            kind=KIND_SHAPE,
            alias=alias,
            status=response.status_code,
            reason="bridge payload carries no text",
            source=payload,
        )
    return record


def acknowledges(response: BridgeResponse) -> bool:
    """Whether a side-effecting call (pushtogmail) was confirmed by the bridge."""
    if not response.ok or not is_json_media_type(response.content_type):
        return False
    return bool(parse_payload(response.text).get("ok"))
