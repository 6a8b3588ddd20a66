"""
Fake DB-API connections for executor tests.

The fakes record every driver interaction in ``events`` so tests can assert
exactly which of execute / commit / rollback / close happened, how often, and
in which order, without a real database.

Usage:
    def test_insert(fake_connection):
        cn = fake_connection(rowcount=1)
        ...
        assert cn.events == ['cursor', 'execute', 'commit', 'cursor.close', 'close']
"""
import pytest


def description(*names, type_codes=None):
    """Build a DB-API cursor description of 7-tuples."""
    type_codes = type_codes or [None] * len(names)
    return [(name, code, None, None, None, None, None)
            for name, code in zip(names, type_codes)]


class FakeCursor:

    def __init__(self, connection):
        self.connection = connection
        self.description = None
        self.rowcount = -1
        self._rows = []

    @property
    def lastrowid(self):
        self.connection.events.append('lastrowid')
        return self.connection.lastrowid

    def execute(self, sql, params=None):
        cn = self.connection
        cn.events.append('execute')
        cn.executed.append((sql, params))
        if cn.execute_error is not None:
            raise cn.execute_error
        self.description = cn.description
        self.rowcount = cn.rowcount
        self._rows = list(cn.rows)

    def fetchone(self):
        if self.connection.fetch_error is not None:
            raise self.connection.fetch_error
        if not self._rows:
            return None
        return self._rows.pop(0)

    def fetchmany(self, size):
        if self.connection.fetch_error is not None:
            raise self.connection.fetch_error
        chunk, self._rows = self._rows[:size], self._rows[size:]
        return chunk

    def close(self):
        self.connection.events.append('cursor.close')


class FakeConnection:

    def __init__(self, dialect='sqlite', rows=(), description=None, rowcount=-1,
                 lastrowid=None, execute_error=None, commit_error=None,
                 rollback_error=None, fetch_error=None):
        self.dialect = dialect
        self.rows = list(rows)
        self.description = description
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.execute_error = execute_error
        self.commit_error = commit_error
        self.rollback_error = rollback_error
        self.fetch_error = fetch_error
        self.isolation_level = ''
        self.autocommit = True
        self.events = []
        self.executed = []
        self.cursor_kwargs = []

    def cursor(self, **kwargs):
        self.events.append('cursor')
        self.cursor_kwargs.append(kwargs)
        return FakeCursor(self)

    def commit(self):
        self.events.append('commit')
        if self.commit_error is not None:
            raise self.commit_error

    def rollback(self):
        self.events.append('rollback')
        if self.rollback_error is not None:
            raise self.rollback_error

    def close(self):
        self.events.append('close')


@pytest.fixture
def fake_connection():
    """
    Fixture that provides a factory function to create fake connections.

    Example usage:
        def test_count(fake_connection):
            cn = fake_connection(rows=[(5,)], description=description('count'))
    """
    def factory(**kwargs):
        return FakeConnection(**kwargs)

    return factory
