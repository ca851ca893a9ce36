""" Opaque cursors

A cursor is a base64url string with tagged JSON inside:

    base64url({"type": "next" | "prev", "payload": { order key: value }})
"""

from .sjson import UNDEFINED
from .payload import CursorPayload, CursorDirection
from .encode import encode_opaque_cursor, decode_opaque_cursor
