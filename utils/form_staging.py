"""Draft user held by the add/edit form."""

from typing import Optional

from models.entry import Entry


class FormStagingArea:
    """Holds the user being typed in, plus edit bookkeeping.

    ``submitted`` is set on every submit attempt so the form knows when
    to start showing validation messages; ``reset()`` clears it.
    """

    def __init__(self):
        self.draft = Entry()
        self.confirm_secret = ""
        self.submitted = False
        self.editing_index: Optional[int] = None

    @property
    def is_editing(self) -> bool:
        return self.editing_index is not None

    def stage(self, entry: Entry, index: int) -> None:
        self.draft = entry.copy()
        self.confirm_secret = ""
        self.editing_index = index

    def secrets_match(self) -> bool:
        return self.draft.password == self.confirm_secret

    def reset(self) -> None:
        self.draft = Entry()
        self.confirm_secret = ""
        self.submitted = False
        self.editing_index = None
