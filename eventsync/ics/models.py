"""Data models for ICS content processing."""

from typing import Dict, NamedTuple


class ContentLine(NamedTuple):
    """One unfolded ICS content line split into its parts.

    ``DTSTART;TZID=America/Chicago:20250101T120000`` becomes
    ``ContentLine("DTSTART", {"TZID": "America/Chicago"}, "20250101T120000")``.
    """

    name: str
    params: Dict[str, str]
    value: str
