"""Line-folding aware ICS decoder.

Turns raw ICS text into ``Event`` records, one per VEVENT block, in source
order. Decoding is synchronous and lazy: ``ICSDecoder.decode`` returns a
generator, so restarting requires decoding the content again.
"""

import logging
from typing import Dict, Iterator, List, Optional

from ..events.models import Event
from .field_mapper import DEFAULT_TIMEZONE, FieldMapper
from .models import ContentLine

logger = logging.getLogger(__name__)

# Joins a continuation line onto the logical line it extends.
FOLD_SEPARATOR = " "


def _is_continuation(line: str) -> bool:
    return line[:1] in (" ", "\t")


def unfold_lines(content: str) -> Iterator[str]:
    """Yield logical lines, joining continuation lines onto their predecessor.

    A physical line starting with a space or tab continues the previous
    line: its leading whitespace character is stripped and the remainder is
    appended after a single separating space, so ``Hello`` followed by
    `` World`` reads ``Hello World``. Whether a logical line is complete is
    decided by looking one physical line ahead.

    Args:
        content: Raw ICS text with CRLF (or bare LF) line endings

    Yields:
        Unfolded logical lines
    """
    lines: List[str] = content.replace("\r\n", "\n").split("\n")
    logical: Optional[str] = None

    for index, line in enumerate(lines):
        if logical is not None and _is_continuation(line):
            logical += FOLD_SEPARATOR + line[1:]
        else:
            logical = line

        next_line = lines[index + 1] if index + 1 < len(lines) else ""
        if _is_continuation(next_line):
            continue

        yield logical
        logical = None


def parse_content_line(line: str) -> Optional[ContentLine]:
    """Split a logical line into name, parameters and value.

    Returns:
        Parsed content line, or None for lines without a ``:`` separator
    """
    head, sep, value = line.partition(":")
    if not sep:
        return None

    name, *raw_params = head.strip().split(";")
    params: Dict[str, str] = {}
    for raw in raw_params:
        key, _, param_value = raw.partition("=")
        params[key.strip().upper()] = param_value.strip().strip('"')

    return ContentLine(name.strip().upper(), params, value.strip())


def iter_content_lines(content: str) -> Iterator[ContentLine]:
    """Yield every non-blank content line of an ICS document."""
    for logical in unfold_lines(content):
        if not logical.strip():
            continue
        parsed = parse_content_line(logical)
        if parsed is not None:
            yield parsed


class ICSDecoder:
    """Decodes ICS documents into events for one organization."""

    def __init__(self, mapper: Optional[FieldMapper] = None, default_timezone: str = DEFAULT_TIMEZONE):
        """Initialize decoder.

        Args:
            mapper: Field mapper; one is built for ``default_timezone`` if omitted
            default_timezone: Zone applied to floating local times
        """
        self.mapper = mapper or FieldMapper(default_timezone)

    def decode(self, content: str, organization: str) -> Iterator[Event]:
        """Decode VEVENT blocks into events.

        Lines outside a VEVENT block are ignored, as are the properties of
        components nested inside one (e.g. VALARM).

        Args:
            content: Raw ICS text
            organization: Organization pre-set on every event

        Yields:
            Events in source order
        """
        current: Optional[Event] = None
        nested: List[str] = []

        for line in iter_content_lines(content):
            if line.name == "BEGIN":
                component = line.value.upper()
                if current is None and component == "VEVENT":
                    current = Event(organization=organization)
                elif current is not None:
                    nested.append(component)
                continue

            if line.name == "END":
                component = line.value.upper()
                if nested:
                    if component == nested[-1]:
                        nested.pop()
                    continue
                if current is not None and component == "VEVENT":
                    yield current
                    current = None
                continue

            if current is None or nested:
                continue

            self.mapper.apply(current, line)

        if current is not None:
            logger.warning(f"Unterminated VEVENT dropped for {organization} (UID: {current.uid!r})")

    def decode_all(self, content: str, organization: str) -> List[Event]:
        """Decode an entire document into a list."""
        events = list(self.decode(content, organization))
        logger.debug(f"Decoded {len(events)} events for {organization}")
        return events
