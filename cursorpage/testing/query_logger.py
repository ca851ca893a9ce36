""" See what the paginator sends to the database """

from __future__ import annotations

from typing import Any, NamedTuple

import sqlalchemy as sa


class LoggedQuery(NamedTuple):
    """ A statement, as the database got it """
    # SQL, in the dialect's own syntax
    statement: str

    # Bound parameters, by name
    parameters: dict[str, Any]

    def parameters_like(self, fragment: str) -> dict[str, Any]:
        """ Get parameters whose name contains `fragment`

        Example:
            query.parameters_like('cursor_')  # the values the cursor compares against
        """
        return {name: value for name, value in self.parameters.items() if fragment in name}


class QueryLogger(list):
    """ Log the queries an engine executes

    Example:
        with QueryLogger(engine) as queries:
            paginate(connection, stmt, 10, cursor)

        assert len(queries) == 1
        assert list(queries[0].parameters_like('cursor_').values()) == [10]
    """

    def __init__(self, engine: sa.engine.Engine):
        super().__init__()
        self.engine = engine

    def __enter__(self):
        sa.event.listen(self.engine, 'after_cursor_execute', self._after_cursor_execute, named=True)
        return self

    def __exit__(self, *exc_info):
        sa.event.remove(self.engine, 'after_cursor_execute', self._after_cursor_execute)
        return False

    def _after_cursor_execute(self, statement: str, context: sa.engine.ExecutionContext, **kw):
        # Compiled parameters have names; the DBAPI ones may be positional
        compiled_parameters = getattr(context, 'compiled_parameters', None)
        parameters = dict(compiled_parameters[0]) if compiled_parameters else {}
        self.append(LoggedQuery(statement, parameters))
