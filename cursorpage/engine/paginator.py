""" CursorPaginator: keyset pagination over a select statement

This is low level. See paginate().
"""

from __future__ import annotations

import logging
from collections import abc
from typing import Any, Optional

import sqlalchemy as sa

from cursorpage import exc
from cursorpage.cursor import CursorPayload, CursorDirection, UNDEFINED
from cursorpage.operations import build_boundary_predicate
from cursorpage.order import OrderKey, OrderSpec, get_order_spec, set_order_spec
from cursorpage.sainfo.columns import is_column
from cursorpage.sainfo.models import is_model_instance
from cursorpage.typing import SAConnectable, SAExpression

from .metadata import EntityMetadata
from .page import Page
from .settings import PaginationSettings
from .subjects import SubjectRegistry


logger = logging.getLogger(__name__)


class CursorPaginator:
    """ Cursor Paginator: loads one page of a statement's results, and makes cursors to neighbor pages

    The statement must be ordered: keyset pagination compares the ORDER BY values of every row
    with those of the boundary row the cursor remembers.
    For stable pages, the ordering must be unique: end it with a primary key. See `order_by_primary_key()`.

    Example:
        paginator = CursorPaginator(stmt, 10, cursor)
        page = paginator.fetch(connection)
    """
    # The statement to paginate. Composed by the caller: filtered, joined, ordered.
    stmt: sa.sql.Select

    # Page size: the final value, with defaults and limits applied
    page_size: int

    # The decoded cursor, if any.
    # None for the first page, as well as for a malformed cursor we've chosen to ignore
    cursor: Optional[CursorPayload]

    # ORDER BY of the statement
    order_spec: OrderSpec

    # What we know about the entity: nullability, field paths
    metadata: EntityMetadata

    # Labeled expressions of the statement
    subjects: Optional[SubjectRegistry]

    # Pagination settings
    settings: PaginationSettings

    # The WHERE condition that selects rows after (before) the cursor row. None for the first page.
    boundary: Optional[SAExpression]

    # ORDER BY expressions that the statement does not select: { order key => label }
    # They are loaded as extra labeled columns to read cursor values from, and removed from the rows.
    hidden_columns: dict[str, str]

    def __init__(self,
                 stmt: sa.sql.Select,
                 page_size: Optional[int] = None,
                 cursor: Optional[str] = None,
                 *,
                 metadata: EntityMetadata = None,
                 subjects: SubjectRegistry = None,
                 settings: PaginationSettings = None):
        """ Prepare to paginate a statement

        Args:
            stmt: The statement to paginate
            page_size: The number of rows per page. None to use the default.
            cursor: The cursor received from a previous page. None for the first page.
            metadata: Entity metadata. By default, it's detected from the statement.
            subjects: Labeled expressions that the statement may be sorted by
            settings: Pagination settings

        Raises:
            exc.PaginationInputError: invalid page size
            exc.MalformedCursorError: invalid cursor (only when configured to raise)
            exc.InvalidOrderKeyError: the ORDER BY cannot be introspected
        """
        self.settings = settings or self.DEFAULT_SETTINGS
        self.stmt = stmt
        self.subjects = subjects
        self.metadata = metadata or EntityMetadata.for_statement(stmt)
        self.page_size = self.settings.get_final_page_size(page_size)
        self.order_spec = get_order_spec(stmt, subjects=subjects, nulls_are_largest=self.settings.nulls_are_largest)
        self.cursor = self._decode_cursor(cursor)
        self.boundary = self._build_boundary()
        self.hidden_columns = self._find_hidden_columns()

        # A cursor that says nothing about the current ORDER BY: the first page
        if self.cursor is not None and self.boundary is None:
            logger.debug('The cursor has no values for the current ORDER BY. Serving the first page')
            self.cursor = None

    __slots__ = 'stmt', 'page_size', 'cursor', 'order_spec', 'metadata', 'subjects', 'settings', 'boundary', 'hidden_columns'

    # Default settings
    DEFAULT_SETTINGS = PaginationSettings()

    @property
    def direction(self) -> CursorDirection:
        """ Which way we're going. The first page always goes 'next' """
        return self.cursor.direction if self.cursor is not None else CursorDirection.NEXT

    def statement(self) -> sa.sql.Select:
        """ Get the statement that loads the page

        * Only rows after (or before) the cursor row
        * Reversed ordering when going back
        * Sort values that the statement does not select, as extra columns
        * One extra row: to tell whether there's more
        """
        stmt = self.stmt

        # Boundary
        if self.boundary is not None:
            stmt = stmt.where(self.boundary)

        # Load the sort values we would not see otherwise
        if self.hidden_columns:
            stmt = stmt.add_columns(*(
                self.order_spec.get(key).expression.label(label)  # type: ignore[union-attr]
                for key, label in self.hidden_columns.items()
            ))

        # Going back: load rows in the reverse order. We'll reverse them back in memory.
        if self.direction == CursorDirection.PREV:
            stmt = set_order_spec(stmt, self.order_spec.reversed())

        # Customize
        stmt = self.settings.customize_statement(self, stmt)

        # We will always load one more row to check if there's more
        return stmt.limit(self.page_size + 1)

    def fetch(self, connection: SAConnectable) -> Page:
        """ Load the page

        Args:
            connection: A Connection, or a Session. With a Session, ORM entities are loaded as objects.

        Errors from the database are not handled: they propagate as they are.
        """
        result = connection.execute(self.statement())
        return self.inspect_data_rows(result.all())

    async def fetch_async(self, connection: Any) -> Page:
        """ Load the page: async version

        Args:
            connection: An AsyncConnection, or an AsyncSession
        """
        result = await connection.execute(self.statement())
        return self.inspect_data_rows(result.all())

    def inspect_data_rows(self, rows: abc.Sequence[sa.engine.Row]) -> Page:
        """ Make a page from the loaded rows: trim the extra row, restore the order, generate cursors """
        rows = list(rows)
        direction = self.direction
        has_cursor = self.cursor is not None

        # Did we get the extra row?
        overfetched = len(rows) > self.page_size
        if overfetched:
            rows = rows[:self.page_size]

        # Going back: rows were loaded in the reverse order
        if direction == CursorDirection.PREV:
            rows.reverse()

        # We came from a page that's next to us
        has_next = overfetched or direction == CursorDirection.PREV
        has_prev = has_cursor and (overfetched or direction == CursorDirection.NEXT)

        logger.debug('Page: %d rows, direction=%s, overfetched=%s, has_prev=%s, has_next=%s',
                     len(rows), direction.value, overfetched, has_prev, has_next)

        # Boundary rows' values
        if rows:
            next_values = self._row_values(rows[-1])
            prev_values = self._row_values(rows[0])
        elif has_cursor:
            # Empty page: stay at the cursor row
            next_values = prev_values = self.cursor.known_values()  # type: ignore[union-attr]
        else:
            next_values = prev_values = {}

        return Page(
            rows=[self._convert_row(row) for row in rows],
            next_cursor=CursorPayload.create(CursorDirection.NEXT, next_values).encode() if has_next else None,
            previous_cursor=CursorPayload.create(CursorDirection.PREV, prev_values).encode() if has_prev else None,
        )

    def _decode_cursor(self, cursor: Optional[str]) -> Optional[CursorPayload]:
        """ Decode the cursor; or give up and go to the first page """
        if not cursor:
            return None

        try:
            return CursorPayload.decode(cursor)
        except exc.MalformedCursorError as e:
            if self.settings.raise_on_malformed_cursor:
                raise

            logger.warning('%s. Serving the first page', e)
            return None

    def _build_boundary(self) -> Optional[SAExpression]:
        if self.cursor is None:
            return None

        return build_boundary_predicate(
            self.order_spec,
            self.cursor.values,
            self.metadata.is_nullable,
            self.cursor.direction,
            param_prefix=self.settings.param_prefix,
        )

    def _find_hidden_columns(self) -> dict[str, str]:
        """ Find ORDER BY expressions that the statement does not select

        For instance, a column of a joined table that is only used for sorting.
        Labels are skipped: a label refers to a selected column by definition.
        """
        selected = self.stmt.selected_columns
        return {
            order_key.key: f'{self.settings.param_prefix}{i}'
            for i, order_key in enumerate(self.order_spec)
            if order_key.label is None and not selected.contains_column(order_key.expression)
        }

    def _row_values(self, row: sa.engine.Row) -> dict[str, Any]:
        """ Get cursor values from a row. Unknown values are left out. """
        values = {}
        for order_key in self.order_spec:
            value = self._row_value(row, order_key)
            if value is not UNDEFINED:
                values[order_key.key] = value
            else:
                logger.warning('Cannot read the value of %r from the row: the cursor will not remember it. '
                               'Is it a deferred column?', order_key.key)
        return values

    def _row_value(self, row: sa.engine.Row, order_key: OrderKey) -> Any:
        # Loaded as an extra column
        label = self.hidden_columns.get(order_key.key)
        if label is not None:
            return row._mapping[label]

        # ORM entity: walk the object
        entity = self._row_entity(row)
        if entity is not None:
            path = self.metadata.field_path(order_key)
            if path is not None:
                return path.extract(entity)

        # Result set columns: by label, by column object, by column name
        mapping = row._mapping
        for lookup in _row_lookups(order_key):
            try:
                return mapping[lookup]
            except (KeyError, sa.exc.InvalidRequestError):
                continue

        return UNDEFINED

    def _row_entity(self, row: sa.engine.Row) -> Optional[object]:
        """ Get the ORM entity from a row, if the row has one """
        if self.metadata.Model is not None and len(row) and is_model_instance(row[0], self.metadata.Model):
            return row[0]
        return None

    def _convert_row(self, row: sa.engine.Row) -> Any:
        """ Convert a result row into what the caller gets: an ORM object, or a dict. Without the hidden columns. """
        if len(row) - len(self.hidden_columns) == 1 and self._row_entity(row) is not None:
            return row[0]

        hidden = set(self.hidden_columns.values())
        return {key: value for key, value in row._mapping.items() if key not in hidden}


def _row_lookups(order_key: OrderKey) -> abc.Iterator[Any]:
    if order_key.label is not None:
        yield order_key.label
    else:
        yield order_key.element
        if is_column(order_key.element):
            yield order_key.element.key
