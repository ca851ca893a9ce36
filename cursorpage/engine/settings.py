from __future__ import annotations

import dataclasses
from typing import Optional, TYPE_CHECKING

from cursorpage import exc


if TYPE_CHECKING:
    import sqlalchemy as sa
    from .paginator import CursorPaginator


@dataclasses.dataclass
class PaginationSettings:
    """ Settings for pagination

    This object defines additional behavior: page sizes, NULL ordering, error tolerance
    """
    # The page size you get by default, if not specified
    default_page_size: int = 25

    # The max number of items you get, regardless of the page size
    max_page_size: Optional[int] = None

    # Where the database puts NULLs when ORDER BY does not say NULLS FIRST/LAST.
    # True: NULLs are larger than any value (Postgres, Oracle)
    # False: NULLs are smaller than any value (SQLite, MySQL)
    nulls_are_largest: bool = True

    # Prefix for bound parameter names that hold cursor values
    param_prefix: str = '_cursor_'

    # What to do when the cursor cannot be decoded:
    # False: serve the first page
    # True: raise exc.MalformedCursorError
    raise_on_malformed_cursor: bool = False

    # ### Callbacks for CursorPaginator

    def get_final_page_size(self, page_size: Optional[int]) -> int:
        """ Callback that fine-tunes the page size by applying default and max values

        Raises:
            exc.PaginationInputError: not a positive integer
        """
        # Apply default
        if page_size is None:
            page_size = self.default_page_size

        # Validate
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
            raise exc.PaginationInputError(f'Page size must be a positive integer, got {page_size!r}')

        # Apply max
        if self.max_page_size:
            page_size = min(page_size, self.max_page_size)

        # Done
        return page_size

    def customize_statement(self, paginator: CursorPaginator, stmt: sa.sql.Select) -> sa.sql.Select:
        """ Callback that customizes the statement

        Used by: CursorPaginator, after the boundary condition and the ordering are applied, before LIMIT.

        Default behavior: none
        You can override this method for custom behavior
        """
        return stmt
