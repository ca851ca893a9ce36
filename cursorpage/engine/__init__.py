""" The engine: puts the ORDER BY, the cursor, and the boundary together to load a page """

from .settings import PaginationSettings
from .subjects import SubjectRegistry
from .metadata import EntityMetadata, FieldPath, resolve_field_path
from .page import Page, PageLinks
from .paginator import CursorPaginator
from .paginate import paginate, paginate_async
