"""eventsync - community event feed aggregation with local moderation."""

__version__ = "1.0.0"
__author__ = "Dallas Urbanists"
