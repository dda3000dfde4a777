import json
import os

import pytest

from storage import PersistenceError, load_records, save_records


def test_missing_file_returns_none(tmp_path):
    assert load_records(str(tmp_path / "missing.json")) is None


def test_save_writes_indented_json(tmp_path):
    path = tmp_path / "books.json"
    save_records(str(path), [{"id": 1, "title": "Dune"}])

    text = path.read_text(encoding="utf-8")
    assert text.startswith("[\n  {\n    \"id\": 1,")
    assert json.loads(text) == [{"id": 1, "title": "Dune"}]


def test_save_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "books.json"
    save_records(str(path), [])
    assert load_records(str(path)) == []


def test_save_leaves_no_temp_files(tmp_path):
    path = tmp_path / "books.json"
    save_records(str(path), [{"id": 1}])
    save_records(str(path), [{"id": 2}])
    assert os.listdir(tmp_path) == ["books.json"]
    assert load_records(str(path)) == [{"id": 2}]


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "books.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PersistenceError, match="Could not read"):
        load_records(str(path))


def test_non_array_raises(tmp_path):
    path = tmp_path / "books.json"
    path.write_text('{"books": []}', encoding="utf-8")
    with pytest.raises(PersistenceError, match="expected a JSON array"):
        load_records(str(path))


def test_write_failure_raises(tmp_path):
    # The target path is a directory, so the final replace cannot succeed
    target = tmp_path / "books.json"
    target.mkdir()
    (target / "keep").write_text("x", encoding="utf-8")
    with pytest.raises(PersistenceError, match="Could not write"):
        save_records(str(target), [{"id": 1}])
    assert sorted(os.listdir(tmp_path)) == ["books.json"]


def test_unicode_is_kept_readable(tmp_path):
    path = tmp_path / "books.json"
    save_records(str(path), [{"title": "Kőszívű ember fiai"}])
    assert "Kőszívű" in path.read_text(encoding="utf-8")
