from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, NamedTuple, Optional, TypeVar


RowT = TypeVar('RowT')


class PageLinks(NamedTuple):
    """ Links to the prev/next pages """
    # Link to the previous page, if available
    prev: Optional[str]

    # Link to the next page, if available
    next: Optional[str]


@dataclass
class Page(Generic[RowT]):
    """ A page of results """
    # Result rows, in the order of the query
    rows: list[RowT] = field(default_factory=list)

    # Cursor to the next page, if there is one
    next_cursor: Optional[str] = None

    # Cursor to the previous page, if there is one
    previous_cursor: Optional[str] = None

    @property
    def has_next(self) -> bool:
        return self.next_cursor is not None

    @property
    def has_prev(self) -> bool:
        return self.previous_cursor is not None

    @property
    def links(self) -> PageLinks:
        return PageLinks(prev=self.previous_cursor, next=self.next_cursor)

    def __iter__(self):
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: Any):
        return self.rows[index]
