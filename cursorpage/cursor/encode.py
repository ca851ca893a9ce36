from __future__ import annotations

import base64
import binascii
import re
from typing import Any

from cursorpage import exc

from . import sjson


def encode_opaque_cursor(data: Any) -> str:
    """ Encode data as an opaque cursor: tagged JSON, base64url, no padding """
    return base64.urlsafe_b64encode(sjson.dumps(data).encode()).decode().rstrip('=')


def decode_opaque_cursor(cursor: str) -> Any:
    """ Decode an opaque cursor into data

    Raises:
        exc.MalformedCursorError: not base64url, not UTF-8, not tagged JSON
    """
    if not isinstance(cursor, str) or not BASE64URL_REX.fullmatch(cursor):
        raise exc.MalformedCursorError('not a base64url string')
    if len(cursor) > MAX_CURSOR_LENGTH:
        raise exc.MalformedCursorError(f'too long: {len(cursor)} characters')

    # Padding was stripped: put it back
    padded = cursor + '=' * (-len(cursor) % 4)

    try:
        data_encoded = base64.urlsafe_b64decode(padded).decode()
    except (binascii.Error, UnicodeDecodeError) as e:
        raise exc.MalformedCursorError(str(e)) from e

    try:
        return sjson.loads(data_encoded)
    except ValueError as e:  # json.JSONDecodeError is a ValueError
        raise exc.MalformedCursorError(str(e)) from e
    except RecursionError as e:  # deeply nested arrays or objects
        raise exc.MalformedCursorError('nested too deeply') from e


# URL-safe alphabet; no padding
BASE64URL_REX = re.compile(r'[A-Za-z0-9_-]*')

# Cursors only carry the sort values of one row: anything longer is not ours
MAX_CURSOR_LENGTH = 16384
