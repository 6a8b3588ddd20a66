import logging
import pathlib
import site

import pytest
from dbrecords.connection import dispose_all_engines

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def dispose_engines():
    """Dispose cached engines after each test so file databases are released."""
    yield
    dispose_all_engines()


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    """Capture dbrecords debug logging for every test."""
    caplog.set_level(logging.DEBUG, logger='dbrecords')


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.sqlite',
]
