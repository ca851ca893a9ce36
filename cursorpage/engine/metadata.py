""" Entity metadata: what the paginator knows about the entity it pages through

* Nullability of ORDER BY columns: tells the boundary predicate whether NULLs are possible
* Field paths: where to find the value of an ORDER BY key on a loaded ORM object
"""

from __future__ import annotations

from collections import abc
from dataclasses import dataclass
from typing import Any, Optional

import sqlalchemy as sa
import sqlalchemy.orm

from cursorpage.cursor import UNDEFINED
from cursorpage.order import OrderKey
from cursorpage.sainfo.columns import is_column, is_column_nullable, column_attribute_name
from cursorpage.sainfo.models import entity_alias_names, get_mapper
from cursorpage.sainfo.relations import get_relationship, is_collection, target_mapper
from cursorpage.typing import SAModelOrAlias, SAInstance


@dataclass(frozen=True)
class FieldPath:
    """ A path to a value on an ORM object: relationships to walk, then an attribute to read

    Example:
        key "author_profile.rating" on an Article
        -> FieldPath(relations=('author', 'profile'), attribute='rating')
    """
    # Relationship attribute names, from the root object
    relations: tuple[str, ...]

    # Column attribute name on the final object
    attribute: str

    # Does the path go through a collection relationship (one-to-many, many-to-many)?
    # A list has no single value to put into a cursor.
    through_collection: bool = False

    def extract(self, obj: SAInstance) -> Any:
        """ Get the value from an object

        Only walks attributes that are already loaded: never triggers a lazy load.

        Returns:
            The value.
            None if a relationship on the path is loaded, but has no object.
            UNDEFINED if the value is not known: not loaded, or a collection on the way.
        """
        if self.through_collection:
            return UNDEFINED

        for name in self.relations:
            if obj is None:
                return None
            if name in sa.inspect(obj).unloaded:
                return UNDEFINED
            obj = getattr(obj, name)

        if obj is None:
            return None
        if self.attribute in sa.inspect(obj).unloaded:
            return UNDEFINED
        return getattr(obj, self.attribute)


class EntityMetadata:
    """ Information about the entity being paginated

    Args:
        Model: The model (or aliased class) that rows are loaded as. None for Core statements.
        nullable: Nullability overrides: { order key => may it be NULL? }.
            Use it for expressions: by default, any expression that is not a column is considered nullable.
    """
    # The root model. None for Core statements
    Model: Optional[SAModelOrAlias]

    # Nullability overrides, by key
    nullable: dict[str, bool]

    def __init__(self, Model: Optional[SAModelOrAlias] = None, *, nullable: abc.Mapping[str, bool] = None):
        self.Model = Model
        self.nullable = dict(nullable or {})
        self._field_paths: dict[str, Optional[FieldPath]] = {}

    __slots__ = 'Model', 'nullable', '_field_paths'

    @classmethod
    def for_statement(cls, stmt: sa.sql.Select, **kwargs) -> EntityMetadata:
        """ Get metadata for the first ORM entity the statement selects """
        for description in stmt.column_descriptions:
            if description.get('entity') is not None:
                return cls(description['entity'], **kwargs)
        return cls(None, **kwargs)

    def is_nullable(self, order_key: OrderKey) -> bool:
        """ Can this key have NULL values? """
        try:
            return self.nullable[order_key.key]
        except KeyError:
            return is_column_nullable(order_key.expression)

    def field_path(self, order_key: OrderKey) -> Optional[FieldPath]:
        """ Find where the value of an order key lives on a loaded object

        Returns:
            None if the key cannot be found on the entity: not a column of the entity or its relationships
        """
        if self.Model is None or order_key.label is not None or not is_column(order_key.expression):
            return None

        try:
            return self._field_paths[order_key.key]
        except KeyError:
            path = self._field_paths[order_key.key] = resolve_field_path(self.Model, order_key.key)
            return path


def resolve_field_path(Model: SAModelOrAlias, key: str) -> Optional[FieldPath]:
    """ Resolve a "<alias>.<column>" key into a path over the relationships of a model

    The alias is either the name of the entity itself (its table name, or the name of the aliased class),
    or names of relationships joined with "_":

        "users.age"              -> User.age
        "author.name"            -> Article.author.name
        "author_profile.rating"  -> Article.author.profile.rating

    Relationship names may contain underscores themselves: the longest matching name wins.
    """
    alias, dot, column_key = key.partition('.')
    if not dot:
        return None

    mapper = get_mapper(Model)

    # The entity itself
    if alias in entity_alias_names(Model):
        attribute = column_attribute_name(mapper, column_key)
        return FieldPath(relations=(), attribute=attribute) if attribute else None

    # Relationships
    segments = alias.split('_')
    relations: list[str] = []
    through_collection = False

    start = 0
    while start < len(segments):
        # Greedy: try the longest name first
        for end in range(len(segments), start, -1):
            relationship = get_relationship(mapper, '_'.join(segments[start:end]))
            if relationship is not None:
                break
        else:
            return None

        relations.append(relationship.key)
        through_collection = through_collection or is_collection(relationship)
        mapper = target_mapper(relationship)
        start = end

    attribute = column_attribute_name(mapper, column_key)
    if attribute is None:
        return None

    return FieldPath(relations=tuple(relations), attribute=attribute, through_collection=through_collection)
