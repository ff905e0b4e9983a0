"""Text field model, style resolution and field naming."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field as dataclass_field, fields, replace
from enum import Enum
import itertools
import logging
from typing import Any
import uuid

logger = logging.getLogger(__name__)

NameFactory = Callable[[], str]


class TextAlign(str, Enum):
    LEFT = "L"
    CENTER = "C"
    RIGHT = "R"

    @classmethod
    def coerce(cls, value: TextAlign | str) -> TextAlign:
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        try:
            return cls(text.upper())
        except ValueError:
            pass
        try:
            return cls[text.upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown text alignment: {value!r}") from exc


def unique_name() -> str:
    return uuid.uuid4().hex


class SequentialNames:
    """Deterministic names: ``field_1``, ``field_2``, ..."""

    def __init__(self, prefix: str = "field") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self._prefix}_{next(self._counter)}"


STYLE_ATTRIBUTES = (
    "font",
    "font_style",
    "font_size",
    "text_align",
    "text_color",
    "line_height",
    "border",
)

# camelCase keys accepted from property bags
PROPERTY_ALIASES = {
    "fontStyle": "font_style",
    "fontSize": "font_size",
    "textAlign": "text_align",
    "textColor": "text_color",
    "lineHeight": "line_height",
}

FIELD_DEFAULTS: dict[str, Any] = {
    "font": "Helvetica",
    "font_style": "",
    "font_size": 12,
    "text_align": TextAlign.LEFT,
    "text_color": "#000000",
    "line_height": 1,
    "border": False,
}


def is_empty(value: Any) -> bool:
    return value is None or value == "" or value is False or value == 0


def parse_hex_color(text: str | None) -> tuple[int, int, int]:
    """Parse ``#RRGGBB`` into an ``(r, g, b)`` tuple.

    Channels are read left to right from up to two hex digits each. The first
    channel that cannot be read, and every channel after it, is 0.
    """
    channels = [0, 0, 0]
    if not text or not text.startswith("#"):
        return (0, 0, 0)

    rest = text[1:]
    for index in range(3):
        digits = ""
        while rest and len(digits) < 2 and rest[0] in "0123456789abcdefABCDEF":
            digits += rest[0]
            rest = rest[1:]
        if not digits:
            break
        channels[index] = int(digits, 16)
    return (channels[0], channels[1], channels[2])


@dataclass(frozen=True, slots=True)
class FieldStyle:
    font: str
    font_style: str
    font_size: float
    text_align: TextAlign
    text_color: str
    line_height: float
    border: bool

    @property
    def rgb(self) -> tuple[int, int, int]:
        return parse_hex_color(self.text_color)


@dataclass(slots=True)
class Field:
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float | None = None
    height: float | None = None
    font: str | None = None
    font_style: str | None = None
    font_size: float | None = None
    text_align: TextAlign | str | None = None
    text_color: str | None = None
    line_height: float | None = None
    border: bool | None = None
    value: str = ""
    extra: dict[str, Any] = dataclass_field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = unique_name()
        if self.value is None:
            self.value = ""

    @classmethod
    def from_mapping(
        cls,
        properties: Any,
        name_factory: NameFactory | None = None,
    ) -> Field:
        """Build a field from a property bag.

        Unknown keys land in ``extra``. Anything that is not a mapping is
        logged and produces an empty field with a generated name.
        """
        name_factory = name_factory or unique_name
        if not isinstance(properties, Mapping):
            logger.warning("Invalid field properties, expected a mapping: %r", properties)
            return cls(name=name_factory())

        known = {item.name for item in fields(cls)} - {"extra"}
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in properties.items():
            attribute = PROPERTY_ALIASES.get(key, key)
            if attribute in known:
                kwargs[attribute] = value
            else:
                extra[key] = value

        if extra:
            logger.debug("Field properties kept as extra: %s", sorted(extra))
        if not kwargs.get("name"):
            kwargs["name"] = name_factory()
        return cls(**kwargs, extra=extra)

    def set_value(self, value: Any) -> Field:
        self.value = "" if value is None else value
        return self

    def set_defaults(self, defaults: Field) -> None:
        """Copy every empty style attribute from ``defaults``."""
        for attribute in STYLE_ATTRIBUTES:
            if is_empty(getattr(self, attribute)):
                setattr(self, attribute, getattr(defaults, attribute))

    def get_color_rgb(self) -> tuple[int, int, int]:
        return parse_hex_color(self.text_color)

    @property
    def is_boxed(self) -> bool:
        return bool(self.width) and bool(self.height)

    def clone(self, name_factory: NameFactory | None = None) -> Field:
        name_factory = name_factory or unique_name
        return replace(self, name=name_factory(), extra=dict(self.extra))

    def __copy__(self) -> Field:
        return self.clone()


def coerce_field(value: Field | Mapping[str, Any], name_factory: NameFactory | None = None) -> Field:
    if isinstance(value, Field):
        return value
    return Field.from_mapping(value, name_factory=name_factory)


def resolve_style(field: Field, defaults: Field | None = None) -> FieldStyle:
    """Merge ``field`` over ``defaults`` over ``FIELD_DEFAULTS``.

    Neither field is modified.
    """
    resolved: dict[str, Any] = {}
    for attribute in STYLE_ATTRIBUTES:
        value = getattr(field, attribute)
        if is_empty(value) and defaults is not None:
            value = getattr(defaults, attribute)
        if is_empty(value):
            value = FIELD_DEFAULTS[attribute]
        resolved[attribute] = value

    return FieldStyle(
        font=str(resolved["font"]),
        font_style=str(resolved["font_style"] or ""),
        font_size=float(resolved["font_size"]),
        text_align=TextAlign.coerce(resolved["text_align"]),
        text_color=str(resolved["text_color"]),
        line_height=float(resolved["line_height"]),
        border=bool(resolved["border"]),
    )
