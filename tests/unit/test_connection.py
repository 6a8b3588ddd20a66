"""
Tests for the SQLAlchemy connection provider.
"""
import sqlite3

import pytest
import sqlalchemy as sa
from dbrecords import DatabaseOptions, connect
from dbrecords.connection import get_engine_for_options
from sqlalchemy.pool import NullPool


def test_engine_reused_for_same_url(mocker):
    factory = mocker.Mock()
    options = DatabaseOptions(drivername='sqlite', database='reuse.db')

    first = get_engine_for_options(options, engine_factory=factory)
    second = get_engine_for_options(options, engine_factory=factory)

    assert first is second
    factory.assert_called_once()
    url, kwargs = factory.call_args.args[0], factory.call_args.kwargs
    assert url == 'sqlite:///reuse.db'
    assert kwargs['poolclass'] is NullPool
    assert 'detect_types' in kwargs['connect_args']


def test_postgres_engine_url(mocker):
    factory = mocker.Mock()
    options = DatabaseOptions(hostname='db', username='u', password='p',
                              database='app', port=5432)

    get_engine_for_options(options, engine_factory=factory)

    assert factory.call_args.args[0] == 'postgresql+psycopg://u:p@db:5432/app'


def test_connect_returns_configured_connection(tmp_path):
    cn = connect({'drivername': 'sqlite', 'database': str(tmp_path / 'c.db')})
    try:
        assert isinstance(cn, sa.engine.Connection)
        raw = cn.connection.driver_connection
        assert isinstance(raw, sqlite3.Connection)
        assert raw.execute('PRAGMA foreign_keys').fetchone() == (1,)
    finally:
        cn.close()


def test_connect_keyword_overrides(tmp_path):
    options = DatabaseOptions(drivername='sqlite', database=str(tmp_path / 'a.db'))

    cn = connect(options, database=str(tmp_path / 'b.db'))
    try:
        assert cn.engine.url.database == str(tmp_path / 'b.db')
    finally:
        cn.close()


def test_connect_validates_options():
    with pytest.raises(ValueError, match='field database'):
        connect(drivername='sqlite')
