"""XML escaping and text truncation helpers for section builders."""

from typing import Optional

# Replacement order matters: "&" first to avoid double-escaping
_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def escape_xml(text: Optional[str]) -> str:
    """Escape XML special characters for safe inclusion in XML content.

    Args:
        text: Text to escape (None becomes "")

    Returns:
        Escaped text

    Example:
        escape_xml('PR <title> & "description"')
        # 'PR &lt;title&gt; &amp; &quot;description&quot;'
    """
    if text is None:
        return ""
    for char, entity in _XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def truncate_text(text: Optional[str], max_length: int) -> str:
    """Truncate text at a word boundary, appending "..." when cut.

    Cuts at the last space within ``max_length`` characters; a single long
    word is cut at ``max_length``.

    Example:
        truncate_text("This is a long title", 10)  # "This is a..."
        truncate_text("Supercalifragilisticexpialidocious", 10)  # "Supercalif..."
    """
    if not text:
        return ""
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        return truncated[:last_space] + "..."
    return truncated + "..."
