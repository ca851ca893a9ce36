import re


def param_name(prefix: str, key: str) -> str:
    """ Make a bound parameter name for an order key

    Example:
        param_name('_cursor_', 'u.age') -> '_cursor_u__age'
    """
    return prefix + _NON_WORD.sub('_', key.replace('.', '__'))


_NON_WORD = re.compile(r'\W')
