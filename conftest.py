import pytest

from library import Library


@pytest.fixture
def data_file(tmp_path):
    return str(tmp_path / "books.json")


@pytest.fixture
def lib(data_file):
    # Each test gets its own empty library backed by a temporary JSON file
    lib = Library(data_file=data_file, seed_samples=False)
    lib.load()
    return lib
