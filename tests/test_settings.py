import pytest
import sqlalchemy as sa

from cursorpage import CursorPaginator, CursorPayload, PaginationSettings, paginate
from cursorpage import exc
from cursorpage.testing import created_tables, insert, paginator2sql

from .util.models import Base, Person, person


def test_page_size():
    """ Test: default and max page size """
    settings = PaginationSettings()
    assert settings.get_final_page_size(None) == 25
    assert settings.get_final_page_size(10) == 10
    assert settings.get_final_page_size(1000) == 1000

    settings = PaginationSettings(default_page_size=10, max_page_size=50)
    assert settings.get_final_page_size(None) == 10
    assert settings.get_final_page_size(20) == 20
    assert settings.get_final_page_size(1000) == 50

    # Invalid
    for page_size in (0, -1, 1.5, '10', True):
        with pytest.raises(exc.PaginationInputError):
            settings.get_final_page_size(page_size)

    # Paginator
    stmt = sa.select(Person.id).order_by(Person.id)
    assert CursorPaginator(stmt).page_size == 25
    assert CursorPaginator(stmt, settings=settings).page_size == 10
    assert CursorPaginator(stmt, 100, settings=settings).page_size == 50
    assert paginator2sql(CursorPaginator(stmt, 100, settings=settings)).endswith('LIMIT 51')


def test_param_prefix():
    """ Test: cursor parameter names """
    stmt = sa.select(Person.id).order_by(Person.id)
    cursor = CursorPaginator(stmt, 1).inspect_data_rows([]).next_cursor
    assert cursor is None

    cursor = CursorPayload.create('next', {'persons.id': 1}).encode()

    params = CursorPaginator(stmt, 1, cursor).statement().compile().params
    assert any('cursor_persons__id' in name for name in params)

    settings = PaginationSettings(param_prefix='_after_')
    params = CursorPaginator(stmt, 1, cursor, settings=settings).statement().compile().params
    assert any('after_persons__id' in name for name in params)
    assert not any('cursor_persons__id' in name for name in params)


def test_customize_statement(connection: sa.engine.Connection, settings: PaginationSettings):
    """ Test: customize_statement() callback """
    class OnlyAdultsSettings(PaginationSettings):
        def customize_statement(self, paginator: CursorPaginator, stmt: sa.sql.Select) -> sa.sql.Select:
            return stmt.where(Person.age >= 18)

    settings = OnlyAdultsSettings(nulls_are_largest=settings.nulls_are_largest)

    with created_tables(connection, Base):
        insert(connection, Person, [person(1, 30), person(2, 10), person(3, 20), person(4, 40)])
        stmt = sa.select(Person.id).order_by(Person.id)

        page = paginate(connection, stmt, 2, settings=settings)
        assert [row['id'] for row in page.rows] == [1, 3]

        page = paginate(connection, stmt, 2, page.next_cursor, settings=settings)
        assert [row['id'] for row in page.rows] == [4]
        assert page.next_cursor is None
