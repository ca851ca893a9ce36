from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Generic, Optional, TypeVar

import pydantic

from cursorpage.engine import Page


DataT = TypeVar('DataT')


class CursorPaginationReturnMessage(pydantic.BaseModel, Generic[DataT]):
    """ Response body for a paginated list

    Example:
        {
            "statusCode": 200,
            "success": true,
            "message": "success",
            "timestamp": "2022-01-01T00:00:00Z",
            "data": [...],
            "nextCursor": "eyJqc29uIjp7...",
            "previousCursor": null
        }
    """
    statusCode: int = 200
    success: bool = True
    message: str = 'success'
    timestamp: datetime = pydantic.Field(default_factory=lambda: datetime.now(timezone.utc))

    # Page rows
    data: list[DataT]

    # Cursors to neighbor pages, if they exist
    nextCursor: Optional[str] = None
    previousCursor: Optional[str] = None

    @classmethod
    def from_page(cls, page: Page, *, convert: Callable[[Any], Any] = None, **fields) -> CursorPaginationReturnMessage:
        """ Make a response from a page

        Args:
            page: The loaded page
            convert: Function to convert every row, e.g. an ORM object into a pydantic model
            **fields: Other fields to set: statusCode, message
        """
        rows = page.rows if convert is None else [convert(row) for row in page.rows]
        return cls(
            data=rows,
            nextCursor=page.next_cursor,
            previousCursor=page.previous_cursor,
            **fields
        )
