"""Tests for the route initializer loader."""

import sys

import pytest

from mox.services.initializer_loader import load_initializer


@pytest.fixture
def mocks_dir(tmp_path):
    (tmp_path / 'mox_test_routes.py').write_text(
        'calls = []\n'
        '\n'
        'def register(router):\n'
        '    calls.append(router)\n'
        '\n'
        'NOT_CALLABLE = 42\n'
    )
    yield tmp_path
    sys.modules.pop('mox_test_routes', None)
    if str(tmp_path) in sys.path:
        sys.path.remove(str(tmp_path))


def test_load_initializer_from_search_path(mocks_dir):
    initializer = load_initializer('mox_test_routes:register', search_paths=[str(mocks_dir)])

    sentinel = object()
    initializer(sentinel)

    assert sys.modules['mox_test_routes'].calls == [sentinel]


@pytest.mark.parametrize('import_path', ['mox_test_routes', 'mox_test_routes:', ':register'])
def test_rejects_malformed_import_path(import_path):
    with pytest.raises(ValueError, match='package.module:function'):
        load_initializer(import_path)


def test_rejects_non_callable(mocks_dir):
    with pytest.raises(ValueError, match='not callable'):
        load_initializer('mox_test_routes:NOT_CALLABLE', search_paths=[str(mocks_dir)])


def test_load_failure():
    with pytest.raises(RuntimeError, match='Cannot load initializer'):
        load_initializer('non.existent.routes:register')


def test_missing_attribute(mocks_dir):
    with pytest.raises(RuntimeError, match='Cannot load initializer'):
        load_initializer('mox_test_routes:missing', search_paths=[str(mocks_dir)])
