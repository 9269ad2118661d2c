from dataclasses import dataclass, field
from typing import List

from .entry import Experience


@dataclass
class RowState:
    """Display flags for one roster row."""

    expanded: bool = False
    biography_expanded: bool = False
    password_visible: bool = False
    # Filled by the lazy resolver when the row is expanded
    experiences: List[Experience] = field(default_factory=list)
