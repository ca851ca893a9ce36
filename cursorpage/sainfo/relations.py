from __future__ import annotations

from functools import cache
from typing import Optional

import sqlalchemy as sa
import sqlalchemy.orm


@cache
def get_relationship(mapper: sa.orm.Mapper, name: str) -> Optional[sa.orm.RelationshipProperty]:
    """ Get a relationship by name, or None """
    return mapper.relationships.get(name)


def is_collection(relationship: sa.orm.RelationshipProperty) -> bool:
    """ Does the relationship load a list of objects? (one-to-many, many-to-many) """
    return bool(relationship.uselist)


def target_mapper(relationship: sa.orm.RelationshipProperty) -> sa.orm.Mapper:
    """ Get the mapper of the related model """
    return relationship.mapper
