"""
Schema node model for the API schema editor.

A schema is a tree of nodes. Each node is one of three variants selected by
its type: an object node with ordered children, an array node with at most
one element schema, or a scalar node without substructure. Request
parameters and the persisted API document live here as well.
"""

from enum import Enum
from typing import Dict, Any, List, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

ROOT_NODE_NAME = "root"
ARRAY_ELEM_NAME = "items"
SUCCESS_STATUS = "200"


class NodeType(str, Enum):
    """Type of a schema tree node."""

    OBJECT = "OBJECT"
    ARRAY = "ARRAY"
    STRING = "STRING"
    INT = "INT"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"


SCALAR_NODE_TYPES = (NodeType.STRING, NodeType.INT, NodeType.FLOAT, NodeType.BOOLEAN)


class ParamType(str, Enum):
    """Type of a flat request parameter."""

    STRING = "STRING"
    INT = "INT"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"
    OBJECT = "OBJECT"
    ARRAY = "ARRAY"
    FILE = "FILE"


class RequestMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class BodyType(str, Enum):
    FORM = "FORM"
    JSON = "JSON"
    RAW = "RAW"


BODY_FORM_PARAM_TYPES = (ParamType.STRING, ParamType.FILE)


class _NodeBase(BaseModel):
    """Attributes shared by every schema node variant."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore', frozen=True)

    name: str = ""
    description: str = ""
    example: str = ""
    mock: str = ""
    is_required: bool = Field(False, alias="isRequired")

    def _base_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.type.value,
            'description': self.description,
            'example': self.example,
            'mock': self.mock,
            'isRequired': self.is_required,
        }


class ScalarNode(_NodeBase):
    """Leaf node: STRING, INT, FLOAT or BOOLEAN."""

    type: NodeType = NodeType.STRING

    @field_validator("type")
    @classmethod
    def _check_scalar_type(cls, value: NodeType) -> NodeType:
        if value not in SCALAR_NODE_TYPES:
            raise ValueError(f"Scalar node cannot have type {value.value}")
        return value

    @property
    def children(self) -> List["SchemaNode"]:
        return []

    @property
    def array_elem(self) -> None:
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        data['children'] = []
        return data


class ArrayNode(_NodeBase):
    """Array node carrying at most one element schema."""

    type: NodeType = NodeType.ARRAY
    array_elem: Optional[Union["ObjectNode", "ArrayNode", ScalarNode]] = Field(None, alias="arrayElem")

    @field_validator("type")
    @classmethod
    def _check_array_type(cls, value: NodeType) -> NodeType:
        if value != NodeType.ARRAY:
            raise ValueError(f"Array node cannot have type {value.value}")
        return value

    @field_validator("array_elem", mode="before")
    @classmethod
    def _load_array_elem(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return node_from_dict(value)
        return value

    @property
    def children(self) -> List["SchemaNode"]:
        return []

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        data['children'] = []
        if self.array_elem is not None:
            data['arrayElem'] = self.array_elem.to_dict()
        return data


class ObjectNode(_NodeBase):
    """Object node with ordered, named children."""

    type: NodeType = NodeType.OBJECT
    children: List[Union["ObjectNode", ArrayNode, ScalarNode]] = Field(default_factory=list)

    @field_validator("type")
    @classmethod
    def _check_object_type(cls, value: NodeType) -> NodeType:
        if value != NodeType.OBJECT:
            raise ValueError(f"Object node cannot have type {value.value}")
        return value

    @field_validator("children", mode="before")
    @classmethod
    def _load_children(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [node_from_dict(child) if isinstance(child, dict) else child for child in value]
        return value

    @property
    def array_elem(self) -> None:
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        data['children'] = [child.to_dict() for child in self.children]
        return data


SchemaNode = Union[ObjectNode, ArrayNode, ScalarNode]

ArrayNode.model_rebuild()
ObjectNode.model_rebuild()


def make_node(node_type: NodeType, children: Optional[List[SchemaNode]] = None,
              array_elem: Optional[SchemaNode] = None, **attributes: Any) -> SchemaNode:
    """
    Build a node of the right variant for node_type.

    Substructure that does not belong to the variant is discarded: children
    are kept only for OBJECT and array_elem only for ARRAY.

    Args:
        node_type: Type of the node
        children: Child nodes (OBJECT only)
        array_elem: Element schema (ARRAY only)
        **attributes: name, description, example, mock, is_required

    Returns:
        ObjectNode, ArrayNode or ScalarNode
    """
    node_type = NodeType(node_type)
    if node_type == NodeType.OBJECT:
        return ObjectNode(type=node_type, children=list(children or []), **attributes)
    if node_type == NodeType.ARRAY:
        return ArrayNode(type=node_type, array_elem=array_elem, **attributes)
    return ScalarNode(type=node_type, **attributes)


def _stored_flag(value: Any) -> bool:
    # Only a real boolean or the form presence marker "true" count as set.
    return value is True or value == "true"


def node_from_dict(data: Dict[str, Any]) -> SchemaNode:
    """
    Load a persisted node dictionary into a typed node.

    Stored documents are loosely typed: an array may carry a children list and
    a scalar may carry both. Only the substructure matching the type is kept.

    Args:
        data: Node dictionary in persisted shape

    Returns:
        Typed schema node

    Raises:
        ValueError: If the type is missing or unknown
    """
    if not isinstance(data, dict):
        raise ValueError(f"Schema node must be a dictionary, got {type(data).__name__}")
    if 'type' not in data or data['type'] is None:
        raise ValueError("Schema node is missing its type")

    node_type = NodeType(data['type'])
    attributes = {
        'name': data.get('name') or "",
        'description': data.get('description') or "",
        'example': data.get('example') or "",
        'mock': data.get('mock') or "",
        'is_required': _stored_flag(data.get('isRequired')),
    }
    array_elem = data.get('arrayElem')
    return make_node(
        node_type,
        children=data.get('children') if node_type == NodeType.OBJECT else None,
        array_elem=array_elem if node_type == NodeType.ARRAY and array_elem else None,
        **attributes
    )


def empty_root(node_type: NodeType = NodeType.OBJECT) -> SchemaNode:
    """Return a root node without children."""
    return make_node(node_type, name=ROOT_NODE_NAME)


class RequestParam(BaseModel):
    """One row of a flat parameter group (query, headers, form body)."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore', frozen=True)

    name: str
    type: ParamType = ParamType.STRING
    example: str = ""
    description: str = ""
    is_required: bool = Field(False, alias="isRequired")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.type.value,
            'example': self.example,
            'description': self.description,
            'isRequired': self.is_required,
        }


class BodyRaw(BaseModel):
    model_config = ConfigDict(frozen=True)

    example: str = ""
    description: str = ""


class ApiData(BaseModel):
    """
    Persisted API document handed to the storage collaborator.

    The response schema is stored under the success status code, matching
    the stored shape {"response": {"200": <node>}}.
    """

    model_config = ConfigDict(populate_by_name=True, extra='ignore', frozen=True)

    name: str
    path: str
    method: RequestMethod
    description: Optional[str] = None
    path_params: List[RequestParam] = Field(default_factory=list, alias="pathParams")
    query_params: List[RequestParam] = Field(default_factory=list, alias="queryParams")
    headers: List[RequestParam] = Field(default_factory=list)
    body_type: BodyType = Field(BodyType.FORM, alias="bodyType")
    body_form: List[RequestParam] = Field(default_factory=list, alias="bodyForm")
    body_raw: BodyRaw = Field(default_factory=BodyRaw, alias="bodyRaw")
    body_json: SchemaNode = Field(default_factory=empty_root, alias="bodyJson")
    response: SchemaNode = Field(default_factory=empty_root)

    def to_dict(self) -> Dict[str, Any]:
        """Return the persisted document."""
        return {
            'name': self.name,
            'path': self.path,
            'method': self.method.value,
            'description': self.description,
            'pathParams': [param.to_dict() for param in self.path_params],
            'queryParams': [param.to_dict() for param in self.query_params],
            'headers': [param.to_dict() for param in self.headers],
            'bodyType': self.body_type.value,
            'bodyForm': [param.to_dict() for param in self.body_form],
            'bodyRaw': {
                'example': self.body_raw.example,
                'description': self.body_raw.description,
            },
            'bodyJson': self.body_json.to_dict(),
            'response': {SUCCESS_STATUS: self.response.to_dict()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApiData":
        """
        Load a persisted document.

        Args:
            data: Document in persisted shape

        Returns:
            ApiData instance
        """
        body_json = data.get('bodyJson')
        response = (data.get('response') or {}).get(SUCCESS_STATUS)
        return cls(
            name=data['name'],
            path=data['path'],
            method=data['method'],
            description=data.get('description'),
            path_params=data.get('pathParams') or [],
            query_params=data.get('queryParams') or [],
            headers=data.get('headers') or [],
            body_type=data.get('bodyType') or BodyType.FORM,
            body_form=data.get('bodyForm') or [],
            body_raw=data.get('bodyRaw') or {},
            body_json=node_from_dict(body_json) if body_json else empty_root(),
            response=node_from_dict(response) if response else empty_root(),
        )
