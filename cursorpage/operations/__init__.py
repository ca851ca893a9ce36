""" Operations applied to statements

* boundary: the WHERE condition that selects rows after (or before) the cursor row
"""

from .boundary import build_boundary_predicate
