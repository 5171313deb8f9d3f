"""Errors raised at the host edges (vault, settings, CLI lookups)."""


class NoteviewsError(Exception):
    """Base class for noteviews errors."""


class NoteNotFoundError(NoteviewsError):
    """A note reference did not resolve to a file in the vault."""

    def __init__(self, ref: str):
        super().__init__(f"Note not found: {ref}")
        self.ref = ref
