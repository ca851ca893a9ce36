import sqlalchemy.exc


class BaseCursorpageException(Exception):
    pass


class PaginationInputError(BaseCursorpageException):
    """ Invalid input provided by the User

    Reported when the page size or the cursor cannot be used
    """


class MalformedCursorError(PaginationInputError):
    """ The cursor could not be decoded

    Reported when the string is not base64url, or the payload inside does not have the expected shape.
    Unless configured otherwise, the paginator recovers from this error by serving the first page.
    """

    def __init__(self, err: str):
        super().__init__(f'Malformed cursor: {err}')


class InvalidOrderKeyError(BaseCursorpageException):
    """ An ORDER BY clause that keyset pagination cannot work with

    Reported when an ORDER BY element cannot be introspected: e.g. a raw text() fragment
    """

    def __init__(self, clause: str, err: str):
        self.clause = clause
        super().__init__(f'Cannot paginate over ORDER BY {clause!r}: {err}')


# Errors raised by the query execution itself.
# These are never wrapped or retried: they propagate to the caller as they are.
QueryExecutionError = sqlalchemy.exc.SQLAlchemyError
