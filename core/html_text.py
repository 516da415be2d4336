# =============================================================================
# core/html_text.py  —  Plain-Text Converter for email bodies
# =============================================================================
#
# Graph returns HTML message bodies.  This turns the common layout tags into
# newlines/bullets/tabs, strips everything else, decodes a fixed set of
# entities, and tidies whitespace.  It is a substitution pipeline, not an
# HTML parser: the ORDER of the steps below matters.
# =============================================================================

import re

# Step 1: layout tags -> text layout.  Applied in this order.
_LAYOUT_SUBSTITUTIONS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"</p>", re.IGNORECASE), "\n\n"),
    (re.compile(r"</div>", re.IGNORECASE), "\n"),
    (re.compile(r"</li>", re.IGNORECASE), "\n"),
    (re.compile(r"<li[^>]*>", re.IGNORECASE), "- "),
    (re.compile(r"</tr>", re.IGNORECASE), "\n"),
    (re.compile(r"</td>", re.IGNORECASE), "\t"),
]

# Step 2: any remaining tag.
_TAG_RE = re.compile(r"<[^>]+>")

# Step 3: the only entities we decode, in this order.
_ENTITIES: list[tuple[str, str]] = [
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
]

# Step 4: whitespace cleanup.
_HORIZONTAL_WS_RE = re.compile(r"[ \t]+")
_MANY_NEWLINES_RE = re.compile(r"\n{3,}")


def html_to_text(html: str) -> str:
    """Convert a restricted HTML subset to readable plain text.

    Never raises on malformed markup; unrecognized bits are left as-is.
    """
    text = html
    for pattern, replacement in _LAYOUT_SUBSTITUTIONS:
        text = pattern.sub(replacement, text)

    text = _TAG_RE.sub("", text)

    for entity, char in _ENTITIES:
        text = text.replace(entity, char)

    text = _HORIZONTAL_WS_RE.sub(" ", text)
    text = _MANY_NEWLINES_RE.sub("\n\n", text)
    return text.strip()
