import sqlite3

import dbrecords as db
import pytest

SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    email TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    score REAL,
    joined DATE,
    seen TIMESTAMP,
    avatar BLOB
)
"""

SEED = [
    ('Ann', 'ann@example.com', 'active', 9.5),
    ('Eve', 'eve@example.com', 'active', 7.25),
    ('Fay', None, 'inactive', None),
    ('Gus', 'gus@example.com', 'active', 3.0),
    ('Hal', None, 'inactive', 5.5),
]


@pytest.fixture
def sqlite_path(tmp_path):
    """File-based SQLite database with a seeded users table.

    Schema and seed rows are written with the stdlib driver so the fixture
    does not depend on the code under test.
    """
    path = tmp_path / 'test.db'
    with sqlite3.connect(path) as raw:
        raw.execute(SCHEMA)
        raw.executemany(
            'INSERT INTO users (name, email, status, score) VALUES (?, ?, ?, ?)',
            SEED)
    raw.close()
    return path


@pytest.fixture
def sqlite_connect(sqlite_path):
    """
    Fixture that provides a factory function opening fresh connections to the
    seeded database. Every executor call consumes its connection, so tests
    open a new one per call.

    Example usage:
        def test_count(sqlite_connect):
            assert db.count(sqlite_connect(), 'select count(*) from users') == 5
    """
    def factory():
        return db.connect({'drivername': 'sqlite', 'database': str(sqlite_path)})

    return factory
