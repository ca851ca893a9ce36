""" Boundary predicate: select rows strictly after (or before) the cursor row """

from __future__ import annotations

import logging
from collections import abc
from typing import Any, Optional

import sqlalchemy as sa

from cursorpage.cursor import CursorDirection, UNDEFINED
from cursorpage.order import OrderSpec, OrderKey
from cursorpage.sainfo.names import param_name
from cursorpage.typing import SAExpression


logger = logging.getLogger(__name__)


def build_boundary_predicate(spec: OrderSpec,
                             values: abc.Mapping[str, Any],
                             is_nullable: abc.Callable[[OrderKey], bool],
                             direction: CursorDirection, *,
                             param_prefix: str = '_cursor_') -> Optional[SAExpression]:
    """ Build a "staircase" predicate that selects rows after the cursor row

    Keyset pagination compares the sort tuple of every row with the one of the cursor row:

        (a, b, c) > (:a, :b, :c)

    SQL tuple comparison cannot do it when columns are sorted in different directions, or when NULLs are involved.
    So the comparison is unrolled into per-column terms:

        a > :a OR
        a = :a AND b > :b OR
        a = :a AND b = :b AND c > :c

    where every ">" becomes "<" for DESC columns, and NULLs get special treatment.

    Args:
        spec: ORDER BY of the query
        values: Cursor values: { order key => value }. Keys unknown to `spec` are ignored.
        is_nullable: Function that tells whether a key may have NULL values
        direction: Which way we're going. For 'prev', the predicate selects rows before the cursor.
        param_prefix: Prefix for bound parameter names

    Returns:
        A WHERE condition.
        None when the cursor has no values for any key: there's nothing to compare against.
        sa.false() when no row can possibly be after the cursor.
    """
    # Going backwards is going forward in the reversed order
    if direction == CursorDirection.PREV:
        spec = spec.reversed()

    # Keys that have known values. Others contribute no information and are collapsed.
    keys = [key for key in spec if values.get(key.key, UNDEFINED) is not UNDEFINED]

    ignored = set(values) - set(spec.names)
    if ignored:
        logger.debug('Cursor keys ignored because the query is not sorted by them: %s', sorted(ignored))

    if not keys:
        return None

    # Build the staircase: one disjunct per key
    disjuncts = []
    for i, key in enumerate(keys):
        boundary = _boundary_condition(key, values[key.key], is_nullable(key), param_prefix)

        # A step that can never be true
        if boundary is None:
            continue

        equals = [_equality_condition(prev_key, values[prev_key.key], param_prefix) for prev_key in keys[:i]]
        disjuncts.append(sa.and_(*equals, boundary))

    # No row can be after the cursor
    if not disjuncts:
        return sa.false()

    return sa.or_(*disjuncts)


def _equality_condition(key: OrderKey, value: Any, param_prefix: str) -> SAExpression:
    """ Condition: the row has the same value as the cursor """
    expr = key.expression

    if value is None:
        return expr.is_(None)
    else:
        return expr == _bindparam(key, value, param_prefix)


def _boundary_condition(key: OrderKey, value: Any, nullable: bool, param_prefix: str) -> Optional[SAExpression]:
    """ Condition: the row goes after the cursor on this key

    Returns:
        None if no row can go after the cursor
    """
    expr = key.expression

    # Cursor is at NULL
    if value is None:
        # NULLs first: every non-NULL value goes after
        if key.nulls_first:
            return expr.is_not(None)
        # NULLs last: nothing goes after NULLs
        else:
            return None

    # Cursor is at a value
    param = _bindparam(key, value, param_prefix)
    condition = expr > param if key.is_asc else expr < param

    # NULLs fail every comparison; when they go last, they are after any value: include them explicitly
    if nullable and not key.nulls_first:
        condition = sa.or_(condition, expr.is_(None))

    return condition


def _bindparam(key: OrderKey, value: Any, param_prefix: str) -> sa.sql.elements.BindParameter:
    # unique=True: SqlAlchemy will give every parameter a distinct name
    return sa.bindparam(param_name(param_prefix, key.key), value, type_=key.expression.type, unique=True)
