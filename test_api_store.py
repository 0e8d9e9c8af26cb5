"""
Unit tests for the JSON API store.
"""

import json

import pytest

from api_editor.api_store import ApiStore
from api_editor.exceptions import PersistenceError
from api_editor.schema_node import ApiData, RequestMethod


@pytest.fixture
def store(tmp_path):
    return ApiStore(tmp_path / "apis")


@pytest.fixture
def document():
    return ApiData(name='Ping', path='/ping', method=RequestMethod.GET).to_dict()


class TestApiStore:
    """Test cases for ApiStore."""

    def test_save_and_load(self, store, document):
        path = store.save_api('ping', document)

        assert path.name == 'ping.json'
        assert store.load_api('ping') == document
        assert not path.with_suffix('.json.tmp').exists()

    def test_save_overwrites(self, store, document):
        store.save_api('ping', document)
        changed = dict(document, path='/pong')
        store.save_api('ping', changed)
        assert store.load_api('ping')['path'] == '/pong'

    def test_load_missing(self, store):
        assert store.load_api('nothing') is None

    def test_load_api_data(self, store, document):
        store.save_api('ping', document)
        api = store.load_api_data('ping')
        assert api.method == RequestMethod.GET
        assert api.to_dict() == document

    def test_list_apis(self, store, document):
        assert store.list_apis() == []
        store.save_api('b-api', document)
        store.save_api('a-api', document)
        assert store.list_apis() == ['a-api', 'b-api']

    def test_invalid_id(self, store, document):
        with pytest.raises(PersistenceError) as excinfo:
            store.save_api('../escape', document)
        assert excinfo.value.operation == 'save'

    def test_unserializable_document(self, store):
        with pytest.raises(PersistenceError):
            store.save_api('bad', {'value': object()})
        assert store.load_api('bad') is None

    def test_corrupt_file(self, store, tmp_path):
        (tmp_path / "apis").mkdir()
        (tmp_path / "apis" / "broken.json").write_text("{not json")
        with pytest.raises(PersistenceError) as excinfo:
            store.load_api('broken')
        assert excinfo.value.get_full_details()['context']['operation'] == 'load'

    def test_default_directory_from_config(self, monkeypatch):
        monkeypatch.setattr("api_editor.api_store.get_config_value", lambda section, key, default=None: "stored")
        assert str(ApiStore().base_dir) == "stored"

    def test_written_file_is_json(self, store, document):
        path = store.save_api('ping', document)
        assert json.loads(path.read_text(encoding='utf-8'))['name'] == 'Ping'

    def test_malformed_document_is_reported_on_load(self, store):
        store.save_api('nameless', {'path': '/x', 'method': 'GET'})
        store.save_api('bad-node', {'name': 'x', 'path': '/x', 'method': 'GET',
                                    'bodyJson': {'name': 'root', 'children': []}})

        with pytest.raises(PersistenceError) as excinfo:
            store.load_api_data('nameless')
        assert excinfo.value.operation == 'load'
        assert excinfo.value.get_full_details()['context']['original_error_type'] == 'KeyError'

        with pytest.raises(PersistenceError) as excinfo:
            store.load_api_data('bad-node')
        assert 'missing its type' in str(excinfo.value)
