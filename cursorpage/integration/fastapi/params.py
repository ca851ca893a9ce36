from typing import NamedTuple, Optional

import fastapi


class CursorPaginationParams(NamedTuple):
    """ Pagination parameters from the request """
    # The cursor received from a previous page
    cursor: Optional[str]

    # The number of items per page. None for the default
    page_size: Optional[int]


def cursor_pagination(*,
        paginationCursor: Optional[str] = fastapi.Query(
            None,
            title='Cursor to the page to load.',
            description='Copy `nextCursor` or `previousCursor` from a previous response. Omit for the first page.',
        ),
        recordsPerPage: Optional[int] = fastapi.Query(
            None,
            ge=1,
            title='The number of items per page.',
        ),
) -> CursorPaginationParams:
    """ Get cursor pagination parameters from the request

    Example:
        /api/?paginationCursor=eyJqc29uIjp7...&recordsPerPage=10

        @app.get('/api/users')
        def list_users(pagination: CursorPaginationParams = Depends(cursor_pagination)):
            page = paginate(ssn, stmt, pagination.page_size, pagination.cursor)
            return CursorPaginationReturnMessage.from_page(page)
    """
    return CursorPaginationParams(cursor=paginationCursor or None, page_size=recordsPerPage)
