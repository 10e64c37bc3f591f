"""Plain-text cleanup for feed descriptions."""

import re
from typing import Optional

MAX_DESCRIPTION_LENGTH = 300
ELLIPSIS = "..."

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

# Decoded in this order, so "&amp;lt;" ends up as "<".
_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)


def truncate(text: str, max_length: int = MAX_DESCRIPTION_LENGTH) -> str:
    """Cut text to max_length characters, ending in an ellipsis when cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def strip_markup(html: Optional[str], max_length: int = MAX_DESCRIPTION_LENGTH) -> str:
    """
    Turn an HTML fragment into a short plain-text description.

    Script and style blocks are removed with their content, remaining tags
    become spaces, a fixed set of entities is decoded, whitespace is
    collapsed and the result is truncated to max_length characters.
    """
    if not html:
        return ""

    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    text = _WHITESPACE_RE.sub(" ", text).strip()

    return truncate(text, max_length)
