from __future__ import annotations

from typing import Any, Optional

import sqlalchemy as sa

from cursorpage.typing import SAConnectable

from .page import Page
from .paginator import CursorPaginator


def paginate(connection: SAConnectable, stmt: sa.sql.Select, page_size: Optional[int] = None, cursor: Optional[str] = None, **kwargs) -> Page:
    """ Load one page of a statement's results

    Example:
        stmt = sa.select(User).order_by(User.age.desc(), User.id.asc())
        page = paginate(ssn, stmt, 10, request_cursor)
        page.rows, page.next_cursor, page.previous_cursor

    Args:
        connection: A Connection, or a Session
        stmt: The statement to paginate. Must be ordered.
        page_size: Rows per page. None for the default.
        cursor: The cursor from a previous page. None for the first page.
        **kwargs: More arguments for CursorPaginator: metadata, subjects, settings
    """
    return CursorPaginator(stmt, page_size, cursor, **kwargs).fetch(connection)


async def paginate_async(connection: Any, stmt: sa.sql.Select, page_size: Optional[int] = None, cursor: Optional[str] = None, **kwargs) -> Page:
    """ Load one page of a statement's results, with an AsyncConnection or an AsyncSession """
    return await CursorPaginator(stmt, page_size, cursor, **kwargs).fetch_async(connection)
