"""
End-to-end executor operations against a file-based SQLite database.

Every call consumes its connection, so persistence is always checked through
a fresh connection.
"""
import dbrecords as db
import pytest
import sqlalchemy as sa


def test_find_one_matching_row(sqlite_connect):
    record = db.find_one(sqlite_connect(), 'SELECT id, name FROM users WHERE id = ?', 1)

    assert record == {'id': 1, 'name': 'Ann'}
    assert list(record) == ['id', 'name']


def test_find_one_no_match(sqlite_connect):
    assert db.find_one(sqlite_connect(), 'SELECT id FROM users WHERE id = ?', 999) == {}


def test_find_all_in_result_order(sqlite_connect):
    records = db.find_all(sqlite_connect(),
                          'SELECT name, status FROM users WHERE status = ? ORDER BY id DESC',
                          'active')

    assert [r['name'] for r in records] == ['Gus', 'Eve', 'Ann']
    assert all(list(r) == ['name', 'status'] for r in records)


def test_find_all_no_match(sqlite_connect):
    assert db.find_all(sqlite_connect(), 'SELECT * FROM users WHERE 1 = 0') == []


def test_read_queries_are_repeatable(sqlite_connect):
    sql = 'SELECT id, name, score FROM users WHERE score > ? ORDER BY id'

    first = db.find_all(sqlite_connect(), sql, 5)
    second = db.find_all(sqlite_connect(), sql, 5)

    assert first == second
    assert [r['name'] for r in first] == ['Ann', 'Eve', 'Hal']


def test_insert_commits(sqlite_connect):
    assert db.insert(sqlite_connect(), 'INSERT INTO users(name) VALUES(?)', 'Bo') is True

    record = db.find_one(sqlite_connect(), 'SELECT name, status FROM users WHERE name = ?', 'Bo')
    assert record == {'name': 'Bo', 'status': 'active'}


def test_insert_selecting_nothing(sqlite_connect):
    sql = 'INSERT INTO users(name) SELECT name || ? FROM users WHERE 1 = 0'

    assert db.insert(sqlite_connect(), sql, '-copy') is False
    assert db.count(sqlite_connect(), 'SELECT COUNT(*) FROM users') == 5


def test_insert_and_get_id(sqlite_connect):
    key = db.insert_and_get_id(sqlite_connect(), 'INSERT INTO users(name) VALUES(?)', 'Cy')

    assert key == 6
    record = db.find_one(sqlite_connect(), 'SELECT id FROM users WHERE name = ?', 'Cy')
    assert record['id'] == key


def test_insert_and_get_id_without_rows(sqlite_connect):
    sql = 'INSERT INTO users(name) SELECT name FROM users WHERE id = ?'

    assert db.insert_and_get_id(sqlite_connect(), sql, 999) == 0


def test_update_one_row(sqlite_connect):
    assert db.update(sqlite_connect(), 'UPDATE users SET name=? WHERE id=?', 'Dee', 1) == 1

    assert db.find_one(sqlite_connect(), 'SELECT name FROM users WHERE id = ?', 1) == {'name': 'Dee'}


def test_update_no_match(sqlite_connect):
    assert db.update(sqlite_connect(), 'UPDATE users SET name=? WHERE id=?', 'Dee', 999) == 0
    assert db.find_one(sqlite_connect(), 'SELECT name FROM users WHERE id = ?', 1) == {'name': 'Ann'}


def test_update_many_rows(sqlite_connect):
    affected = db.update(sqlite_connect(), 'UPDATE users SET status = ? WHERE status = ?',
                         'archived', 'inactive')

    assert affected == 2
    assert db.count(sqlite_connect(), 'SELECT COUNT(*) FROM users WHERE status = ?', 'archived') == 2


def test_delete_through_update(sqlite_connect):
    assert db.update(sqlite_connect(), 'DELETE FROM users WHERE email IS NULL') == 2
    assert db.count(sqlite_connect(), 'SELECT COUNT(*) FROM users') == 3


def test_count(sqlite_connect):
    assert db.count(sqlite_connect(), 'SELECT COUNT(*) FROM users') == 5


def test_count_empty_result(sqlite_connect):
    assert db.count(sqlite_connect(), 'SELECT id FROM users WHERE 1 = 0') == 0


def test_count_empty_result_strict(sqlite_connect):
    executor = db.Executor(db.ExecutorOptions(strict_count=True))

    with pytest.raises(db.DataAccessError):
        executor.count(sqlite_connect(), 'SELECT id FROM users WHERE 1 = 0')


def test_count_null_aggregate(sqlite_connect):
    assert db.count(sqlite_connect(), 'SELECT MAX(id) FROM users WHERE 1 = 0') == 0


@pytest.mark.parametrize('operation', ['find_one', 'find_all', 'count'])
def test_connection_closed_after_read(sqlite_connect, operation):
    cn = sqlite_connect()

    getattr(db, operation)(cn, 'SELECT COUNT(*) FROM users')

    assert cn.closed


def test_connection_closed_after_failure(sqlite_connect):
    cn = sqlite_connect()

    with pytest.raises(db.DataAccessError):
        db.update(cn, 'UPDATE missing_table SET a = 1')

    assert cn.closed
    with pytest.raises(sa.exc.ResourceClosedError):
        cn.exec_driver_sql('SELECT 1')


@pytest.mark.parametrize('params', [(), (1, 2)], ids=['too_few', 'too_many'])
def test_parameter_count_mismatch(sqlite_connect, params):
    with pytest.raises(db.DataAccessError, match='bindings'):
        db.find_one(sqlite_connect(), 'SELECT id FROM users WHERE id = ?', *params)


def test_invalid_sql_rejected(sqlite_connect):
    cn = sqlite_connect()
    try:
        with pytest.raises(db.ValidationError):
            db.find_all(cn, '')
        assert not cn.closed
    finally:
        cn.close()


def test_placeholder_inside_literal(sqlite_connect):
    db.insert(sqlite_connect(), "INSERT INTO users(name, email) VALUES('Q?', ?)", 'q@example.com')

    record = db.find_one(sqlite_connect(), 'SELECT name, email FROM users WHERE name = ?', 'Q?')
    assert record == {'name': 'Q?', 'email': 'q@example.com'}
