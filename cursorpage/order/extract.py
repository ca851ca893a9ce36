""" OrderSpec Extractor: read the ORDER BY of a statement. And some tools to change it. """

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.sql import operators
from sqlalchemy.sql.elements import (
    Label,
    TextClause,
    UnaryExpression,
    _label_reference,
    _textual_label_reference,
)

from cursorpage import exc
from cursorpage.sainfo.columns import is_column, column_table_name
from cursorpage.sainfo.primary_key import primary_key_attributes
from cursorpage.typing import SAExpression, SAModelOrAlias

from .spec import OrderKey, OrderSpec, SortingDirection, NullsPlacement


if TYPE_CHECKING:
    from cursorpage.engine.subjects import SubjectRegistry


logger = logging.getLogger(__name__)


def get_order_spec(stmt: sa.sql.Select, *, subjects: SubjectRegistry = None, nulls_are_largest: bool = True) -> OrderSpec:
    """ Get the ORDER BY list of a statement

    This is a pure read: the statement is not modified.

    Args:
        stmt: The statement to inspect
        subjects: Registry of labeled expressions. Used to resolve ORDER BY references to select aliases.
        nulls_are_largest: Where the database puts NULLs when ORDER BY does not say it.
            True for Postgres (default), False for SQLite and MySQL.

    Raises:
        exc.InvalidOrderKeyError: an ORDER BY element that cannot be introspected
    """
    keys: list[OrderKey] = []
    seen: set[str] = set()

    for clause in get_order_by_clauses(stmt):
        order_key = order_key_from_clause(clause, stmt, subjects=subjects, nulls_are_largest=nulls_are_largest)

        # Sorting by the same thing twice does not change anything. Skip.
        if order_key.key in seen:
            continue

        seen.add(order_key.key)
        keys.append(order_key)

    if not keys:
        logger.warning('The statement has no ORDER BY: keyset pagination will not be able to move between pages')

    return OrderSpec(keys=tuple(keys))


def get_order_by_clauses(stmt: sa.sql.Select) -> tuple[sa.sql.ColumnElement, ...]:
    """ Get the raw ORDER BY clauses of a statement """
    # SqlAlchemy has no public API to read them
    return tuple(stmt._order_by_clauses)  # type: ignore[attr-defined]


def set_order_spec(stmt: sa.sql.Select, spec: OrderSpec) -> sa.sql.Select:
    """ Replace the ORDER BY of a statement with the given spec """
    return stmt.order_by(None).order_by(*spec.clauses())


def unshift_order_by(stmt: sa.sql.Select, *clauses: SAExpression) -> sa.sql.Select:
    """ Put new ORDER BY clauses before the existing ones

    Example:
        # Most relevant search results go first, but keep the previous ordering within the same rank
        stmt = unshift_order_by(stmt, sa.desc('rank'))
    """
    current = get_order_by_clauses(stmt)
    return stmt.order_by(None).order_by(*clauses, *current)


def order_by_primary_key(stmt: sa.sql.Select, Model: SAModelOrAlias, direction: SortingDirection = SortingDirection.ASC) -> sa.sql.Select:
    """ Make the ordering unique: append primary key columns that the statement is not yet sorted by

    Keyset pagination needs a unique ordering: otherwise rows with equal sort values may be skipped.
    """
    names = get_order_spec(stmt).names

    for attribute in primary_key_attributes(Model):
        column = attribute.expression
        if _column_key(column) not in names:
            stmt = stmt.order_by(column.asc() if direction == SortingDirection.ASC else column.desc())

    return stmt


def order_key_from_clause(clause: SAExpression, stmt: sa.sql.Select, *, subjects: SubjectRegistry = None, nulls_are_largest: bool = True) -> OrderKey:
    """ Convert one ORDER BY clause into an OrderKey """
    # Peel off the modifiers: ASC/DESC, NULLS FIRST/LAST, label references
    direction: Optional[SortingDirection] = None
    nulls: Optional[NullsPlacement] = None
    element = clause

    while True:
        if isinstance(element, _textual_label_reference):
            break
        elif isinstance(element, _label_reference):
            element = element.element
        elif isinstance(element, UnaryExpression) and element.modifier in _DIRECTION_MODIFIERS:
            if direction is None:
                direction = _DIRECTION_MODIFIERS[element.modifier]
            element = element.element
        elif isinstance(element, UnaryExpression) and element.modifier in _NULLS_MODIFIERS:
            if nulls is None:
                nulls = _NULLS_MODIFIERS[element.modifier]
            element = element.element
        else:
            break

    # Defaults
    if direction is None:
        direction = SortingDirection.ASC
    nulls_explicit = nulls is not None
    if nulls is None:
        nulls = NullsPlacement.default_for(direction, nulls_are_largest=nulls_are_largest)

    # Figure out: the key, the expression to use in WHERE
    label: Optional[str] = None

    if isinstance(element, TextClause):
        raise exc.InvalidOrderKeyError(str(element), 'raw SQL fragments are not supported; use a column or a label')
    # order_by('name'): a reference to a select alias
    elif isinstance(element, _textual_label_reference):
        label = key = element.element
        expression = _resolve_alias(key, stmt, subjects)
    # order_by(expr.label('name')): a labeled expression
    elif isinstance(element, Label):
        label = key = element.name
        expression = _resolve_label(element, subjects)
    # order_by(Model.column): a column
    elif is_column(element):
        key = _column_key(element)
        expression = element
    # Anything else: a function, an operator expression, etc
    else:
        key = _expression_key(element)
        expression = element

    return OrderKey(
        key=key,
        direction=direction,
        nulls=nulls,
        nulls_explicit=nulls_explicit,
        element=element,
        expression=expression,
        label=label,
    )


def _resolve_label(label: Label, subjects: Optional[SubjectRegistry]) -> SAExpression:
    """ Find the expression behind a label: a registered subject, or the labeled expression itself """
    if subjects is not None:
        expression = subjects.get_subject(label.name)
        if expression is not None:
            return expression
    return label.element


def _resolve_alias(name: str, stmt: sa.sql.Select, subjects: Optional[SubjectRegistry]) -> SAExpression:
    """ Find the expression behind a select alias """
    # Registered subject
    if subjects is not None:
        expression = subjects.get_subject(name)
        if expression is not None:
            return expression

    # A labeled column in the SELECT list
    column = stmt.selected_columns.get(name)
    if isinstance(column, Label):
        return column.element
    elif column is not None:
        return column

    # Last resort: a column by this name
    return sa.literal_column(name)


def _column_key(column: SAExpression) -> str:
    return f'{column_table_name(column)}.{column.key}'


def _expression_key(expression: SAExpression) -> str:
    try:
        return str(expression)
    except sa.exc.CompileError as e:
        raise exc.InvalidOrderKeyError(repr(expression), 'cannot compile the expression into a key') from e


_DIRECTION_MODIFIERS = {
    operators.asc_op: SortingDirection.ASC,
    operators.desc_op: SortingDirection.DESC,
}

_NULLS_MODIFIERS = {
    operators.nulls_first_op: NullsPlacement.FIRST,
    operators.nulls_last_op: NullsPlacement.LAST,
}
