"""noteviews - rule-selected custom views for markdown notes."""

__version__ = "0.1.0"
