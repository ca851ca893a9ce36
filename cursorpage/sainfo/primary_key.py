import sqlalchemy as sa
import sqlalchemy.orm

from cursorpage.typing import SAModelOrAlias


def primary_key_attributes(Model: SAModelOrAlias) -> tuple[sa.orm.InstrumentedAttribute, ...]:
    """ Get primary key attributes of a model, adapted to the alias when given an aliased class """
    mapper = sa.inspect(Model).mapper
    return tuple(
        getattr(Model, mapper.get_property_by_column(c).key)
        for c in mapper.primary_key
    )
