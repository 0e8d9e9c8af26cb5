"""
Unit tests for the schema node model.
"""

import pytest
from pydantic import ValidationError

from api_editor.schema_node import (
    ApiData,
    ArrayNode,
    NodeType,
    ObjectNode,
    ParamType,
    RequestMethod,
    RequestParam,
    ScalarNode,
    empty_root,
    make_node,
    node_from_dict,
)


@pytest.fixture
def stored_tree():
    """Loosely typed tree as found in stored documents."""
    return {
        'name': 'root',
        'type': 'OBJECT',
        'children': [
            {'name': 'id', 'type': 'INT', 'example': '7', 'isRequired': True, 'children': []},
            {
                'name': 'tags',
                'type': 'ARRAY',
                'children': [{'name': 'stray', 'type': 'STRING'}],
                'arrayElem': {'name': 'items', 'type': 'STRING', 'mock': '@word'},
            },
            {'name': 'flag', 'type': 'BOOLEAN', 'children': [{'name': 'stray', 'type': 'STRING'}]},
        ],
    }


class TestMakeNode:
    """Test cases for make_node."""

    def test_variant_per_type(self):
        assert isinstance(make_node(NodeType.OBJECT, name='a'), ObjectNode)
        assert isinstance(make_node(NodeType.ARRAY, name='a'), ArrayNode)
        assert isinstance(make_node('FLOAT', name='a'), ScalarNode)

    def test_substructure_outside_variant_is_discarded(self):
        child = make_node(NodeType.STRING, name='c')
        array = make_node(NodeType.ARRAY, children=[child], array_elem=child, name='a')
        scalar = make_node(NodeType.INT, children=[child], array_elem=child, name='s')
        assert array.children == []
        assert array.array_elem == child
        assert scalar.children == []
        assert scalar.array_elem is None

    def test_scalar_rejects_container_type(self):
        with pytest.raises(ValidationError):
            ScalarNode(type=NodeType.OBJECT, name='x')

    def test_nodes_are_frozen(self):
        node = make_node(NodeType.STRING, name='x')
        with pytest.raises(ValidationError):
            node.name = 'y'


class TestNodeFromDict:
    """Test cases for node_from_dict."""

    def test_loads_loose_tree(self, stored_tree):
        root = node_from_dict(stored_tree)
        assert isinstance(root, ObjectNode)
        assert [child.name for child in root.children] == ['id', 'tags', 'flag']

        id_node, tags, flag = root.children
        assert id_node.is_required is True
        assert id_node.example == '7'
        assert tags.children == []
        assert tags.array_elem.mock == '@word'
        assert flag.children == []

    def test_missing_type(self):
        with pytest.raises(ValueError):
            node_from_dict({'name': 'x'})

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            node_from_dict({'name': 'x', 'type': 'DATE'})

    def test_required_flag_accepts_only_true_or_marker(self):
        def required(value):
            return node_from_dict({'name': 'x', 'type': 'STRING', 'isRequired': value}).is_required

        assert required(True) is True
        assert required('true') is True
        assert required('false') is False
        assert required(False) is False
        assert required('') is False
        assert node_from_dict({'name': 'x', 'type': 'STRING'}).is_required is False

    def test_to_dict_shape(self, stored_tree):
        data = node_from_dict(stored_tree).to_dict()
        tags = data['children'][1]
        assert tags['children'] == []
        assert tags['arrayElem']['type'] == 'STRING'
        assert data['children'][0]['isRequired'] is True
        assert 'arrayElem' not in data['children'][0]


class TestApiData:
    """Test cases for the persisted document model."""

    def test_to_dict_wraps_response(self):
        api = ApiData(name='Ping', path='/ping', method=RequestMethod.GET)
        data = api.to_dict()
        assert data['pathParams'] == []
        assert data['response'] == {'200': empty_root().to_dict()}
        assert data['bodyJson']['name'] == 'root'
        assert data['description'] is None

    def test_from_dict(self, stored_tree):
        data = {
            'name': 'Users',
            'path': '/users',
            'method': 'POST',
            'queryParams': [{'name': 'page', 'type': 'INT', 'isRequired': True}],
            'bodyType': 'JSON',
            'bodyJson': stored_tree,
            'response': {'200': {'name': 'root', 'type': 'ARRAY'}},
        }
        api = ApiData.from_dict(data)
        assert api.method == RequestMethod.POST
        assert api.query_params[0].type == ParamType.INT
        assert api.query_params[0].is_required is True
        assert isinstance(api.response, ArrayNode)
        assert api.to_dict()['response']['200']['type'] == 'ARRAY'

    def test_request_param_to_dict(self):
        param = RequestParam(name='file', type=ParamType.FILE)
        assert param.to_dict() == {
            'name': 'file', 'type': 'FILE', 'example': '', 'description': '', 'isRequired': False
        }
