import logging

import pytest
import sqlalchemy as sa

from cursorpage import exc
from cursorpage.order import OrderKey, OrderSpec, SortingDirection as SD, NullsPlacement as NP
from cursorpage.order import get_order_spec, set_order_spec, reverse_order_spec
from cursorpage.order import unshift_order_by, order_by_primary_key
from cursorpage.testing import stmt2sql

from .util.models import Person


metadata = sa.MetaData()

t = sa.Table(
    't', metadata,
    sa.Column('id', sa.Integer, primary_key=True),
    sa.Column('a', sa.Integer, nullable=True),
    sa.Column('b', sa.Integer, nullable=False),
)


@pytest.mark.parametrize(('order_by', 'expected_keys'), [
    # Defaults: Postgres puts NULLs last for ASC, first for DESC
    ([t.c.a], ['t.a ASC NULLS LAST']),
    ([t.c.a.asc()], ['t.a ASC NULLS LAST']),
    ([t.c.a.desc()], ['t.a DESC NULLS FIRST']),
    # Explicit NULLs placement, any nesting
    ([t.c.a.asc().nulls_first()], ['t.a ASC NULLS FIRST']),
    ([t.c.a.desc().nulls_last()], ['t.a DESC NULLS LAST']),
    ([sa.nulls_last(sa.desc(t.c.a))], ['t.a DESC NULLS LAST']),
    # Many columns
    ([t.c.a.desc(), t.c.b, t.c.id.desc()], ['t.a DESC NULLS FIRST', 't.b ASC NULLS LAST', 't.id DESC NULLS FIRST']),
    # Duplicates are dropped
    ([t.c.id, t.c.id.desc()], ['t.id ASC NULLS LAST']),
    # ORM attributes
    ([Person.age.desc(), Person.id], ['persons.age DESC NULLS FIRST', 'persons.id ASC NULLS LAST']),
])
def test_get_order_spec(order_by: list, expected_keys: list[str]):
    """ Test: read ORDER BY from a statement """
    stmt = sa.select(t).order_by(*order_by)
    spec = get_order_spec(stmt)
    assert spec.export() == expected_keys

    # It's a pure read
    assert stmt2sql(stmt) == stmt2sql(sa.select(t).order_by(*order_by))


def test_order_spec_nulls_smallest():
    """ Test: databases that consider NULLs smaller than any value """
    stmt = sa.select(t).order_by(t.c.a.asc(), t.c.b.desc(), t.c.id.desc().nulls_last())
    spec = get_order_spec(stmt, nulls_are_largest=False)
    assert spec.export() == ['t.a ASC NULLS FIRST', 't.b DESC NULLS LAST', 't.id DESC NULLS LAST']


def test_order_spec_object():
    stmt = sa.select(t).order_by(t.c.a.desc(), t.c.id)
    spec = get_order_spec(stmt)

    assert spec.names == ('t.a', 't.id')
    assert 't.a' in spec
    assert 't.b' not in spec
    assert len(spec) == 2
    assert bool(spec)

    key = spec.get('t.a')
    assert key.direction == SD.DESC
    assert key.nulls == NP.FIRST
    assert key.nulls_explicit is False
    assert not key.is_asc
    assert key.nulls_first
    assert key.expression is t.c.a
    assert spec.get('t.z') is None

    assert [k.key for k in spec] == ['t.a', 't.id']


def test_labels():
    """ Test: ORDER BY labels and label references """
    rank = (t.c.a + t.c.b).label('rank')

    # Labeled expression
    stmt = sa.select(t.c.id, rank).order_by(rank.desc(), t.c.id)
    spec = get_order_spec(stmt)
    assert spec.export() == ['rank DESC NULLS FIRST', 't.id ASC NULLS LAST']
    key = spec.get('rank')
    assert key.label == 'rank'
    assert stmt2sql(key.expression) == 't.a + t.b'

    # Reference by name
    stmt = sa.select(t.c.id, rank).order_by(sa.desc('rank'), t.c.id)
    spec = get_order_spec(stmt)
    assert spec.export() == ['rank DESC NULLS FIRST', 't.id ASC NULLS LAST']
    key = spec.get('rank')
    assert key.label == 'rank'
    assert stmt2sql(key.expression) == 't.a + t.b'

    # Unknown name: a column by that name
    stmt = sa.select(t.c.id).order_by('b')
    spec = get_order_spec(stmt)
    assert spec.names == ('b',)
    assert stmt2sql(spec.get('b').expression) == 'b'


def test_expressions():
    """ Test: ORDER BY an expression """
    stmt = sa.select(t).order_by(sa.func.coalesce(t.c.a, 0).desc())
    spec = get_order_spec(stmt)
    assert spec.names == ('coalesce(t.a, :coalesce_1)',)


def test_errors_and_warnings(caplog):
    # Raw SQL cannot be introspected
    with pytest.raises(exc.InvalidOrderKeyError):
        get_order_spec(sa.select(t).order_by(sa.text('a DESC')))

    # No ORDER BY: warning
    with caplog.at_level(logging.WARNING, logger='cursorpage'):
        spec = get_order_spec(sa.select(t))

    assert not spec
    assert spec == OrderSpec(keys=())
    assert 'no ORDER BY' in caplog.text

    # An OrderKey made by hand has nothing to regenerate ORDER BY from
    with pytest.raises(exc.InvalidOrderKeyError):
        OrderKey(key='t.a', direction=SD.ASC, nulls=NP.LAST).clause()


def test_reverse_order_spec():
    """ Test: reversal flips directions and NULLs, keeps keys in order """
    stmt = sa.select(t).order_by(t.c.a.desc().nulls_last(), t.c.b, t.c.id.desc())
    spec = get_order_spec(stmt)

    reversed_spec = reverse_order_spec(spec)
    assert reversed_spec.export() == ['t.a ASC NULLS FIRST', 't.b DESC NULLS FIRST', 't.id ASC NULLS LAST']
    assert [k.nulls_explicit for k in reversed_spec] == [True, False, False]

    # Involution
    assert reversed_spec.reversed() == spec
    assert reversed_spec.reversed().export() == spec.export()


def test_set_order_spec():
    """ Test: put a (reversed) order spec back into a statement """
    stmt = sa.select(t).order_by(t.c.a.desc().nulls_last(), t.c.id)
    spec = get_order_spec(stmt)

    # Same spec: every direction spelled out
    sql = stmt2sql(set_order_spec(stmt, spec))
    assert sql.endswith('ORDER BY t.a DESC NULLS LAST, t.id ASC')

    # Reversed: NULLS only where it was explicit
    sql = stmt2sql(set_order_spec(stmt, spec.reversed()))
    assert sql.endswith('ORDER BY t.a ASC NULLS FIRST, t.id DESC')

    # Label reference
    rank = (t.c.a + t.c.b).label('rank')
    stmt = sa.select(t.c.id, rank).order_by(sa.desc('rank'), t.c.id)
    sql = stmt2sql(set_order_spec(stmt, get_order_spec(stmt).reversed()))
    assert sql.endswith('ORDER BY rank ASC, t.id DESC')


def test_unshift_order_by():
    stmt = sa.select(t).order_by(t.c.id)
    stmt = unshift_order_by(stmt, t.c.a.desc(), t.c.b)
    assert get_order_spec(stmt).names == ('t.a', 't.b', 't.id')


def test_order_by_primary_key():
    # Appended
    stmt = order_by_primary_key(sa.select(Person).order_by(Person.age.desc()), Person)
    assert get_order_spec(stmt).export() == ['persons.age DESC NULLS FIRST', 'persons.id ASC NULLS LAST']

    # Already there
    stmt = order_by_primary_key(sa.select(Person).order_by(Person.id.desc()), Person)
    assert get_order_spec(stmt).export() == ['persons.id DESC NULLS FIRST']

    # Aliased
    u = sa.orm.aliased(Person, name='u')
    stmt = order_by_primary_key(sa.select(u).order_by(u.age), u, SD.DESC)
    assert get_order_spec(stmt).export() == ['u.age ASC NULLS LAST', 'u.id DESC NULLS FIRST']
