""" Tagged JSON: JSON that remembers Python types

Plain JSON loses types: dates become strings, decimals become floats, and there is no way to tell
an unknown value from a missing one. This format keeps a plain JSON document and, next to it,
a map of paths to type tags:

    >>> dumps({'ctime': datetime(2020, 1, 1), 'id': 1})
    '{"json":{"ctime":"2020-01-01T00:00:00","id":1},"meta":{"values":{"ctime":["datetime"]}}}'

Paths are keys joined with ".". Dots and backslashes inside keys are escaped with a backslash.
When the root value itself is tagged, "values" is a list: ["datetime"].

Enum members are stored by name and come back as plain strings: the enum class is not known when decoding.
SqlAlchemy Enum columns accept names, so such values still work as query parameters.
"""

from __future__ import annotations

import base64
import json
import math
from collections import abc
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Union
from uuid import UUID


class _Undefined:
    """ A value that is not known. Unlike None, which is a known NULL. """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'UNDEFINED'

    def __bool__(self):
        return False

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED: Any = _Undefined()


def dumps(obj: Any) -> str:
    """ Serialize a value into tagged JSON

    Raises:
        TypeError: unsupported value type
    """
    tags: dict[str, str] = {}
    plain = _encode(obj, (), tags)

    doc: dict[str, Any] = {'json': plain}
    if tags:
        # The root value is tagged: use the short form
        if '' in tags and len(tags) == 1 and not isinstance(plain, (dict, list)):
            doc['meta'] = {'values': [tags['']]}
        else:
            doc['meta'] = {'values': {path: [tag] for path, tag in tags.items()}}

    return json.dumps(doc, separators=(',', ':'), allow_nan=False)


def loads(s: Union[str, bytes]) -> Any:
    """ Deserialize tagged JSON

    Raises:
        ValueError: not JSON, not tagged JSON, or an unknown tag
    """
    doc = json.loads(s)
    if not isinstance(doc, dict) or 'json' not in doc:
        raise ValueError('Not a tagged JSON document: no "json" key')

    plain = doc['json']
    meta = doc.get('meta', {})
    if not isinstance(meta, dict):
        raise ValueError('"meta" must be an object')

    values = meta.get('values', {})

    # Root value tagged
    if isinstance(values, list):
        return _decode_value(_single_tag(values), plain)
    elif not isinstance(values, dict):
        raise ValueError('"meta.values" must be an object or a list')

    for path, tags in values.items():
        plain = _replace_at_path(plain, split_path(path), _single_tag(tags))

    return plain


# region Paths

def join_path(path: tuple[Union[str, int], ...]) -> str:
    """ Make a path string from path segments """
    return '.'.join(
        str(segment).replace('\\', '\\\\').replace('.', '\\.')
        for segment in path
    )


def split_path(path: str) -> list[str]:
    """ Parse a path string into segments """
    if path == '':
        return []

    segments = []
    current = []
    escaped = False
    for c in path:
        if escaped:
            current.append(c)
            escaped = False
        elif c == '\\':
            escaped = True
        elif c == '.':
            segments.append(''.join(current))
            current = []
        else:
            current.append(c)

    if escaped:
        raise ValueError(f'Invalid path: {path!r}')

    segments.append(''.join(current))
    return segments

# endregion


# region Encoding

def _encode(obj: Any, path: tuple, tags: dict[str, str]) -> Any:
    # Order matters: bool is an int; datetime is a date
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    elif obj is UNDEFINED:
        tags[join_path(path)] = 'undefined'
        return None
    elif isinstance(obj, Enum):
        # Stored by name: decoded as a str
        return obj.name
    elif isinstance(obj, int):
        return obj
    elif isinstance(obj, float):
        if math.isfinite(obj):
            return obj
        tags[join_path(path)] = 'number'
        return 'NaN' if math.isnan(obj) else ('Infinity' if obj > 0 else '-Infinity')
    elif isinstance(obj, datetime):
        tags[join_path(path)] = 'datetime'
        return obj.isoformat()
    elif isinstance(obj, date):
        tags[join_path(path)] = 'date'
        return obj.isoformat()
    elif isinstance(obj, time):
        tags[join_path(path)] = 'time'
        return obj.isoformat()
    elif isinstance(obj, timedelta):
        tags[join_path(path)] = 'timedelta'
        return [obj.days, obj.seconds, obj.microseconds]
    elif isinstance(obj, Decimal):
        tags[join_path(path)] = 'Decimal'
        return str(obj)
    elif isinstance(obj, UUID):
        tags[join_path(path)] = 'UUID'
        return str(obj)
    elif isinstance(obj, bytes):
        tags[join_path(path)] = 'bytes'
        return base64.b64encode(obj).decode()
    elif isinstance(obj, abc.Mapping):
        result = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise TypeError(f'Object keys must be strings, got {key!r}')
            result[key] = _encode(value, path + (key,), tags)
        return result
    elif isinstance(obj, (list, tuple)):
        return [_encode(value, path + (i,), tags) for i, value in enumerate(obj)]
    else:
        raise TypeError(f'Object of type {type(obj).__name__} is not serializable')

# endregion


# region Decoding

def _single_tag(tags: Any) -> str:
    if not isinstance(tags, list) or len(tags) != 1 or not isinstance(tags[0], str):
        raise ValueError(f'Invalid type annotation: {tags!r}')
    return tags[0]


def _replace_at_path(plain: Any, path: list[str], tag: str) -> Any:
    """ Decode the value at `path` and put it back. Returns the (possibly replaced) root. """
    if not path:
        return _decode_value(tag, plain)

    # Find the container
    container = plain
    for segment in path[:-1]:
        container = _child(container, segment)

    # Replace
    last = path[-1]
    if isinstance(container, dict):
        if last not in container:
            raise ValueError(f'Path not found: {last!r}')
        container[last] = _decode_value(tag, container[last])
    elif isinstance(container, list):
        index = _list_index(container, last)
        container[index] = _decode_value(tag, container[index])
    else:
        raise ValueError(f'Path not found: {last!r}')

    return plain


def _child(container: Any, segment: str) -> Any:
    if isinstance(container, dict):
        try:
            return container[segment]
        except KeyError:
            raise ValueError(f'Path not found: {segment!r}')
    elif isinstance(container, list):
        return container[_list_index(container, segment)]
    else:
        raise ValueError(f'Path not found: {segment!r}')


def _list_index(container: list, segment: str) -> int:
    if not segment.isdigit() or int(segment) >= len(container):
        raise ValueError(f'Invalid list index: {segment!r}')
    return int(segment)


def _decode_value(tag: str, value: Any) -> Any:
    try:
        decoder = _DECODERS[tag]
    except KeyError:
        raise ValueError(f'Unknown type tag: {tag!r}')

    try:
        return decoder(value)
    except (TypeError, ValueError, ArithmeticError) as e:
        raise ValueError(f'Invalid {tag} value: {value!r}') from e


def _decode_number(value: str) -> float:
    if value not in ('NaN', 'Infinity', '-Infinity'):
        raise ValueError(value)
    return float(value.replace('Infinity', 'inf'))


_DECODERS: dict[str, abc.Callable[[Any], Any]] = {
    'undefined': lambda value: UNDEFINED,
    'number': _decode_number,
    'datetime': datetime.fromisoformat,
    'date': date.fromisoformat,
    'time': time.fromisoformat,
    'timedelta': lambda value: timedelta(*value),
    'Decimal': Decimal,
    'UUID': UUID,
    'bytes': lambda value: base64.b64decode(value, validate=True),
}

# endregion
