"""Shared fixtures: a small export corpus on disk plus the index built from it."""

from functools import partial

import pytest

from designseek.index.builder import build_index
from designseek.index.cache import IndexCache
from designseek.index.search import FigmaIndexSearcher
from tests.helpers import (
    NATIVE_LIBRARY_FILES,
    WEB_LIBRARY_FILES,
    WEB_MASTER_FILES,
    write_export,
)


@pytest.fixture
def index_dir(tmp_path):
    """Export dir with three of the four sources (native master is missing)."""
    write_export(tmp_path, "web_components_index.json", WEB_LIBRARY_FILES)
    write_export(tmp_path, "native_components_index.json", NATIVE_LIBRARY_FILES)
    write_export(tmp_path, "web_master_index.json", WEB_MASTER_FILES)
    return tmp_path


@pytest.fixture
def index_cache(index_dir):
    return IndexCache(partial(build_index, index_dir))


@pytest.fixture
def index_data(index_cache):
    return index_cache.get()


@pytest.fixture
def searcher(index_cache):
    return FigmaIndexSearcher(index_cache)