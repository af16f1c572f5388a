"""Canvas control model and the decoded property bag."""

from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class WebPartType(str, Enum):
    """Kinds of client-side web parts a canvas control can carry."""

    TEXT = "Text"
    IMAGE = "Image"
    LIST = "List"
    DOCUMENT_LIBRARY = "DocumentLibrary"
    CONTENT_ROLLUP = "ContentRollup"
    NEWS = "News"
    QUICK_LINKS = "QuickLinks"
    EMBED = "ContentEmbed"
    CUSTOM = "Custom"

    @classmethod
    def parse(cls, value: str) -> "WebPartType":
        cleaned = value.strip().lower()
        for member in cls:
            if member.value.lower() == cleaned or member.name.lower() == cleaned:
                return member
        raise ValueError(f"Unknown web part type: {value!r}")


@dataclass
class CanvasControl:
    """One web part placed on a page; ``json_control_data`` is its raw payload."""

    control_type: WebPartType
    json_control_data: str
    control_id: str | None = None
    column: int = 0
    order: int = 0


class PropertyBag(MutableMapping[str, Any]):
    """Ordered property name to JSON value mapping decoded from a control payload."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"PropertyBag({self._values!r})"

    def get_text(self, name: str) -> str | None:
        """Return the property when it holds a string, otherwise None."""
        value = self._values.get(name)
        return value if isinstance(value, str) else None

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)
