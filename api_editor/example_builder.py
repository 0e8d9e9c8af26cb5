"""
Example document generation for schema trees.

Backs the editor's "View Example" action: walks a schema tree and produces a
JSON-compatible value, coercing each scalar's example (or mock) text to the
node's type.
"""

import json
import logging
from typing import Any

from .schema_node import NodeType, SchemaNode

logger = logging.getLogger(__name__)

_TRUE_TOKENS = {'true', '1', 'yes', 'on'}

_ZERO_VALUES = {
    NodeType.STRING: "",
    NodeType.INT: 0,
    NodeType.FLOAT: 0.0,
    NodeType.BOOLEAN: False,
}


def coerce_scalar(node_type: NodeType, text: str) -> Any:
    """
    Convert example text to a value of the given scalar type.

    Args:
        node_type: STRING, INT, FLOAT or BOOLEAN
        text: Example or mock text entered in the editor

    Returns:
        Typed value; the type's zero value when text is empty or unparsable
    """
    if node_type == NodeType.STRING:
        return text

    stripped = (text or "").strip()
    if not stripped:
        return _ZERO_VALUES[node_type]

    if node_type == NodeType.BOOLEAN:
        return stripped.lower() in _TRUE_TOKENS

    try:
        if node_type == NodeType.INT:
            return int(stripped)
        return float(stripped)
    except ValueError:
        logger.debug(f"Cannot read '{stripped}' as {node_type.value}, using zero value")
        return _ZERO_VALUES[node_type]


def build_example(node: SchemaNode, use_mock: bool = False) -> Any:
    """
    Build an example value for a schema tree.

    Args:
        node: Root of the (sub)tree
        use_mock: Prefer mock text over example text where mock is set

    Returns:
        dict for OBJECT, list for ARRAY, typed scalar otherwise
    """
    if node.type == NodeType.OBJECT:
        return {child.name: build_example(child, use_mock) for child in node.children}

    if node.type == NodeType.ARRAY:
        if node.array_elem is None:
            return []
        return [build_example(node.array_elem, use_mock)]

    text = node.mock if use_mock and node.mock else node.example
    return coerce_scalar(node.type, text)


def example_json(node: SchemaNode, use_mock: bool = False, indent: int = 2) -> str:
    """Render build_example output as a JSON string."""
    return json.dumps(build_example(node, use_mock), indent=indent, ensure_ascii=False)
