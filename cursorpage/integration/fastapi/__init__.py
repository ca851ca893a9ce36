""" FastAPI integration: cursor pagination request parameters and response model """

from .params import cursor_pagination, CursorPaginationParams
from .response import CursorPaginationReturnMessage
