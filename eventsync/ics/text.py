"""ICS text value escaping."""

# Backslash must be replaced first so later escapes are not doubled.
_ESCAPES = (
    ("\\", "\\\\"),
    (";", "\\;"),
    (",", "\\,"),
    ("\n", "\\n"),
    ("\r", "\\r"),
)


def escape_text(value: str) -> str:
    """Escape a string for use as an ICS TEXT property value.

    Args:
        value: Raw text from an upstream source

    Returns:
        Text with backslash, semicolon, comma, LF and CR escaped
    """
    for raw, escaped in _ESCAPES:
        value = value.replace(raw, escaped)
    return value
