from __future__ import annotations

from functools import cache
from typing import Optional

import sqlalchemy as sa
import sqlalchemy.orm

from cursorpage.typing import SAExpression


def is_column(expression: SAExpression) -> bool:
    """ Is the expression a real table column (possibly from an aliased table)? """
    return isinstance(expression, sa.Column) or (
        isinstance(expression, sa.sql.expression.ColumnClause) and
        expression.table is not None
    )


def column_table_name(expression: SAExpression) -> Optional[str]:
    """ Get the name of the table (or alias) this column belongs to """
    if not is_column(expression):
        return None
    return expression.table.name  # type: ignore[attr-defined]


def is_column_nullable(expression: SAExpression) -> bool:
    """ Check whether a column may contain NULL values

    Expressions that are not columns are considered nullable: we cannot know.
    """
    if isinstance(expression, sa.Column):
        return bool(expression.nullable)
    return True


@cache
def column_attribute_name(mapper: sa.orm.Mapper, column_key: str) -> Optional[str]:
    """ Find the name of the mapped attribute that loads a column

    Usually, it's the same name; but a column may be mapped under a different attribute name:

        full_name = sa.Column('name', sa.String)
    """
    for prop in mapper.column_attrs:
        if prop.key == column_key:
            return prop.key

    for prop in mapper.column_attrs:
        if any(getattr(column, 'key', None) == column_key or getattr(column, 'name', None) == column_key
               for column in prop.columns):
            return prop.key

    return None
