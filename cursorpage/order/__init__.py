""" ORDER BY as values: read it from a statement, reverse it, put it back """

from .spec import OrderKey, OrderSpec, SortingDirection, NullsPlacement
from .spec import reverse_order_spec
from .extract import get_order_spec, set_order_spec
from .extract import unshift_order_by, order_by_primary_key
