from __future__ import annotations

from typing import Optional

import sqlalchemy as sa

from cursorpage.typing import SAExpression


class SubjectRegistry:
    """ Subjects: expressions added to the SELECT list under an alias

    A statement may be sorted by an alias, e.g. by full-text search rank:

        SELECT *, ts_rank(...) AS rank FROM ... ORDER BY rank DESC

    The alias can be used in ORDER BY, but not in WHERE: the boundary condition has to repeat the expression.
    This registry remembers the expression behind every alias.

    It belongs to the code that builds the query: create one per query, pass it to the paginator.

    Example:
        subjects = SubjectRegistry()
        stmt = subjects.add_subject(stmt, sa.func.ts_rank(...), 'rank')
        stmt = unshift_order_by(stmt, sa.desc('rank'))
        page = paginate(ssn, stmt, 10, cursor, subjects=subjects)
    """

    def __init__(self):
        self._subjects: dict[str, SAExpression] = {}

    __slots__ = '_subjects',

    def add_subject(self, stmt: sa.sql.Select, expression: SAExpression, alias: str) -> sa.sql.Select:
        """ Add `expression AS alias` to the SELECT list and remember it """
        self._subjects[alias] = expression
        return stmt.add_columns(expression.label(alias))

    def get_subject(self, alias: str) -> Optional[SAExpression]:
        """ Get the expression behind an alias """
        return self._subjects.get(alias)

    def __contains__(self, alias: str) -> bool:
        return alias in self._subjects

    def __len__(self) -> int:
        return len(self._subjects)
