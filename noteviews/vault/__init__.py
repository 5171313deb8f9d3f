"""Vault loading and parsing utilities."""

from .loader import Note, Vault, load_note, load_vault
from .parser import extract_links, extract_tags, extract_value_links
from .properties import scan_properties

__all__ = [
    "load_note",
    "load_vault",
    "Note",
    "Vault",
    "extract_links",
    "extract_tags",
    "extract_value_links",
    "scan_properties",
]
