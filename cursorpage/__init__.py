from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version('cursorpage')
except PackageNotFoundError:  # running from a source checkout
    __version__ = '0.0.0'

from .engine import paginate, paginate_async
from .engine import CursorPaginator, PaginationSettings
from .engine import Page, PageLinks
from .engine import EntityMetadata, SubjectRegistry

from .order import OrderSpec, OrderKey, SortingDirection, NullsPlacement
from .order import get_order_spec, reverse_order_spec, unshift_order_by, order_by_primary_key

from .cursor import CursorPayload, CursorDirection, UNDEFINED

from . import exc
