"""JSON codec for canvas control payloads."""

import json

from canvas_provisioning.models import PropertyBag


class ControlDataError(ValueError):
    """The control payload is not a JSON object."""


def decode_properties(text: str | None) -> PropertyBag:
    """Decode a control payload into a property bag."""
    if text is None or not text.strip():
        raise ControlDataError("Control data is empty.")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ControlDataError(f"Control data is not valid JSON: {exc.msg}.") from exc
    if not isinstance(data, dict):
        raise ControlDataError("Control data must be a JSON object.")
    return PropertyBag(data)


def encode_properties(properties: PropertyBag) -> str:
    """Encode a property bag back into compact JSON, keeping key order."""
    return json.dumps(properties.to_dict(), ensure_ascii=False, separators=(",", ":"))
