import sqlalchemy as sa
import sqlalchemy.orm

from cursorpage.typing import SAModelOrAlias


def unaliased_class(Model: SAModelOrAlias) -> type:
    """ Get the actual model class; unaliased, if was

    Args:
         Model: model class or AliasedClass
    """
    return sa.inspect(Model).mapper.class_


def get_mapper(Model: SAModelOrAlias) -> sa.orm.Mapper:
    """ Get the mapper for a model class or an aliased class """
    return sa.inspect(Model).mapper


def entity_alias_names(Model: SAModelOrAlias) -> frozenset[str]:
    """ Get the names this entity is referred to in SQL

    For a model: names of all its tables (more than one with joined table inheritance)
    For an aliased class: the alias name
    """
    insp = sa.inspect(Model)

    if isinstance(insp, sa.orm.util.AliasedInsp):
        return frozenset((insp.name,))
    else:
        return frozenset(table.name for table in insp.tables)


def is_model_instance(obj: object, Model: SAModelOrAlias) -> bool:
    """ Is `obj` an instance of the model? """
    return isinstance(obj, unaliased_class(Model))
