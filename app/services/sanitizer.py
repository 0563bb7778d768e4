import re
from typing import Any

import bleach
from bleach.css_sanitizer import CSSSanitizer

ALLOWED_TAGS = frozenset({
    "b", "i", "em", "strong", "a", "p", "br", "ul", "ol", "li",
    "span", "div", "marquee", "h1", "h2", "h3", "h4", "h5", "h6", "img",
})
ALLOWED_ATTRIBUTES = {
    "a": ["href"],
    "span": ["style"],
    "div": ["style"],
    "img": ["src", "height", "width"],
}
ALLOWED_PROTOCOLS = frozenset({"http", "https"})
ALLOWED_CSS_PROPERTIES = frozenset({"color", "background-color", "font-size"})

# Fields whose values are rendered as markup by clients.
MARKUP_FIELDS = ("username", "oldUn", "message")

_css_sanitizer = CSSSanitizer(allowed_css_properties=ALLOWED_CSS_PROPERTIES)

_COLOR_RE = re.compile(
    r"#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})"
    r"|rgb\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*\)"
    r"|rgba\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*(?:0|1|0?\.\d+|1\.0+)\s*\)"
)

def sanitize(text: str) -> str:
    return bleach.clean(
        text,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        css_sanitizer=_css_sanitizer,
        strip=True,
        strip_comments=True,
    )

def is_valid_color(value: Any) -> bool:
    return isinstance(value, str) and _COLOR_RE.fullmatch(value.strip()) is not None

def normalize_color(value: Any, default: str) -> Any:
    """Return value unchanged if it is a valid color, else default.

    Empty values are left alone so that a join without a color is still refused.
    """
    if value is None or value == "":
        return value
    if is_valid_color(value):
        return value.strip()
    return default

def sanitize_envelope(envelope: dict, default_color: str) -> dict:
    clean = dict(envelope)
    for field in MARKUP_FIELDS:
        value = clean.get(field)
        if value is None:
            continue
        clean[field] = sanitize(value if isinstance(value, str) else str(value))
    if "color" in clean:
        clean["color"] = normalize_color(clean["color"], default_color)
    return clean
