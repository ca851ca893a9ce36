""" Order spec: the ORDER BY list of a statement, as values """

from __future__ import annotations

from collections import abc
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import cached_property
from typing import Optional

from cursorpage import exc
from cursorpage.typing import SAExpression


class SortingDirection(Enum):
    ASC = 'ASC'
    DESC = 'DESC'

    def reversed(self) -> SortingDirection:
        return SortingDirection.DESC if self is SortingDirection.ASC else SortingDirection.ASC


class NullsPlacement(Enum):
    FIRST = 'NULLS FIRST'
    LAST = 'NULLS LAST'

    def reversed(self) -> NullsPlacement:
        return NullsPlacement.LAST if self is NullsPlacement.FIRST else NullsPlacement.FIRST

    @classmethod
    def default_for(cls, direction: SortingDirection, *, nulls_are_largest: bool = True) -> NullsPlacement:
        """ Where does the database put NULLs when the ORDER BY does not say?

        Postgres:
        > By default, null values sort as if larger than any non-null value;
        > that is, NULLS FIRST is the default for DESC order, and NULLS LAST otherwise.

        SQLite and MySQL consider NULLs smaller than any value: use `nulls_are_largest=False`
        """
        larger_goes_last = direction == SortingDirection.ASC
        return cls.LAST if larger_goes_last == nulls_are_largest else cls.FIRST


@dataclass(frozen=True)
class OrderKey:
    """ One ORDER BY item: an expression, a direction, and NULL placement """
    # Key: the name this item is known by in cursors.
    # "table.column" for columns, the label name for labels, SQL text for other expressions
    key: str

    # Sorting direction
    direction: SortingDirection

    # Where do NULLs go? Always resolved, even if the statement does not say it explicitly
    nulls: NullsPlacement

    # Did the statement say NULLS FIRST/LAST explicitly?
    # If not, ORDER BY is regenerated without it, and the database default applies
    nulls_explicit: bool = False

    # The ORDER BY element, without ASC/DESC and NULLS modifiers.
    # Used to regenerate the ORDER BY verbatim
    element: Optional[SAExpression] = field(default=None, compare=False, repr=False)

    # The expression to compare against in WHERE.
    # Same as `element` for columns; the raw expression for labels
    expression: Optional[SAExpression] = field(default=None, compare=False, repr=False)

    # Result set label, if the ORDER BY refers to a labeled column
    label: Optional[str] = field(default=None, compare=False)

    @property
    def is_asc(self) -> bool:
        return self.direction == SortingDirection.ASC

    @property
    def nulls_first(self) -> bool:
        return self.nulls == NullsPlacement.FIRST

    def reversed(self) -> OrderKey:
        """ Flip the direction and NULL placement """
        return replace(self, direction=self.direction.reversed(), nulls=self.nulls.reversed())

    def clause(self) -> SAExpression:
        """ Regenerate an ORDER BY clause for this key

        Raises:
            exc.InvalidOrderKeyError: the key was not made from a statement, and has no SQL element
        """
        if self.element is None:
            raise exc.InvalidOrderKeyError(self.key, 'no SQL element to regenerate the ORDER BY from')

        clause = self.element.asc() if self.is_asc else self.element.desc()
        if self.nulls_explicit:
            clause = clause.nulls_first() if self.nulls_first else clause.nulls_last()
        return clause

    def export(self) -> str:
        return f'{self.key} {self.direction.value} {self.nulls.value}'


@dataclass(frozen=True)
class OrderSpec:
    """ The ORDER BY list of a query

    Note that the list is an ordered collection: order matters here.
    The first key is the primary sort key, then the secondary, and so on.
    """
    keys: tuple[OrderKey, ...]

    @cached_property
    def names(self) -> tuple[str, ...]:
        """ Get key names, in order """
        return tuple(key.key for key in self.keys)

    def get(self, key: str) -> Optional[OrderKey]:
        """ Get an order key by name """
        for order_key in self.keys:
            if order_key.key == key:
                return order_key
        return None

    def __contains__(self, key: str) -> bool:
        return key in self.names

    def __iter__(self) -> abc.Iterator[OrderKey]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __bool__(self) -> bool:
        return bool(self.keys)

    def reversed(self) -> OrderSpec:
        """ Flip every key: sort the other way around. Keys remain in the same order. """
        return OrderSpec(keys=tuple(key.reversed() for key in self.keys))

    def clauses(self) -> list[SAExpression]:
        """ Regenerate ORDER BY clauses """
        return [key.clause() for key in self.keys]

    def export(self) -> list[str]:
        return [key.export() for key in self.keys]


def reverse_order_spec(spec: OrderSpec) -> OrderSpec:
    """ Direction Reverser: flip every ASC/DESC and every NULLS FIRST/LAST

    Used for backward pages: the query runs in reverse order, and the rows are reversed back in memory.
    """
    return spec.reversed()
