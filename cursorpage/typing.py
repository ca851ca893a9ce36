from typing import Union

import sqlalchemy as sa
import sqlalchemy.orm


# Annotation for SqlAlchemy models
SAModel = type

# Annotation for SqlAlchemy models or aliased classes
SAModelOrAlias = Union[SAModel, sa.orm.util.AliasedClass]

# Annotation for SqlAlchemy instances (objects)
SAInstance = object

# Annotation for an ORDER BY element or a WHERE expression
SAExpression = sa.sql.ColumnElement

# Something to execute statements with: a Connection or a Session
SAConnectable = Union[sa.engine.Connection, sa.orm.Session]
