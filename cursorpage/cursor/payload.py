""" Cursor payload: the data that a cursor contains """

from __future__ import annotations

from collections import abc
from enum import Enum
from types import MappingProxyType
from typing import Any, NamedTuple

from cursorpage import exc

from .encode import encode_opaque_cursor, decode_opaque_cursor
from .sjson import UNDEFINED


class CursorDirection(str, Enum):
    """ Which way to go from the cursor row """
    NEXT = 'next'
    PREV = 'prev'


class CursorPayload(NamedTuple):
    """ Cursor data: direction + the sort values of the boundary row """
    # Where to go: rows after the boundary row ('next'), or before it ('prev')
    direction: CursorDirection

    # Boundary row values: { order key => value }
    # None is a NULL; a missing key or UNDEFINED is a value we know nothing about.
    values: abc.Mapping[str, Any]

    @classmethod
    def create(cls, direction: CursorDirection, values: abc.Mapping[str, Any]) -> CursorPayload:
        """ Create a payload with a read-only copy of the values """
        return cls(direction=CursorDirection(direction), values=MappingProxyType(dict(values)))

    def known_values(self) -> dict[str, Any]:
        """ Get values that actually carry information: i.e. not UNDEFINED """
        return {k: v for k, v in self.values.items() if v is not UNDEFINED}

    def serialize(self) -> dict:
        return {'type': self.direction.value, 'payload': dict(self.values)}

    def encode(self) -> str:
        return encode_opaque_cursor(self.serialize())

    @classmethod
    def decode(cls, cursor: str) -> CursorPayload:
        """ Decode a cursor string

        Raises:
            exc.MalformedCursorError: the string is not a cursor
        """
        data = decode_opaque_cursor(cursor)
        return cls.deserialize(data)

    @classmethod
    def deserialize(cls, data: Any) -> CursorPayload:
        """ Validate the shape of decoded cursor data

        Raises:
            exc.MalformedCursorError: wrong shape
        """
        if not isinstance(data, dict):
            raise exc.MalformedCursorError('cursor data must be an object')

        try:
            direction = CursorDirection(data.get('type'))
        except ValueError:
            raise exc.MalformedCursorError(f'"type" must be "next" or "prev", got {data.get("type")!r}')

        values = data.get('payload')
        if not isinstance(values, dict):
            raise exc.MalformedCursorError('"payload" must be an object')

        # Values are bound to SQL parameters: only scalars are acceptable
        for key, value in values.items():
            if isinstance(value, (dict, list)):
                raise exc.MalformedCursorError(f'value of {key!r} must be a scalar, got {type(value).__name__}')

        return cls.create(direction, values)
