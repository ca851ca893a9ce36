""" SqlAlchemy introspection: models, columns, relations """

from . import models, names, columns, relations, primary_key
