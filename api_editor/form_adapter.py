"""
Tree to form adapter for the API schema editor.

Converts a stored API document into the default values of an edit session.
Checkbox-style inputs only transmit presence, so booleans become the
presence marker "true" or are left out. Array nodes never show a children
list in the editor, so their form shape carries an empty one.

The inverse direction (form data back to typed nodes) is handled by
``api_editor.normalizer``.
"""

import logging
from typing import Dict, Any, List, Optional

from .exceptions import DocumentFormatError, log_error_with_context
from .form_paths import (
    BODY_JSON_PREFIX,
    BODY_FORM_PREFIX,
    HEADERS_PREFIX,
    QUERY_PARAMS_PREFIX,
    RESPONSE_PREFIX,
    FlatPairs,
    flatten,
)
from .schema_node import (
    SUCCESS_STATUS,
    NodeType,
    RequestParam,
    SchemaNode,
    node_from_dict,
)

logger = logging.getLogger(__name__)

PRESENCE_MARKER = "true"


def presence_marker(flag: bool) -> Optional[str]:
    """Return the form value for a checked (True) or unchecked (False) box."""
    return PRESENCE_MARKER if flag else None


def node_to_form(node: SchemaNode) -> Dict[str, Any]:
    """
    Map a schema node to its form shape, recursively.

    Args:
        node: Typed schema node

    Returns:
        Form dictionary with name, type, description, example, mock,
        children, optional arrayElem and optional isRequired marker
    """
    form: Dict[str, Any] = {
        'name': node.name,
        'type': node.type.value,
        'description': node.description,
        'example': node.example,
        'mock': node.mock,
        'children': [] if node.type == NodeType.ARRAY else [node_to_form(child) for child in node.children],
    }
    if node.array_elem is not None:
        form['arrayElem'] = node_to_form(node.array_elem)

    marker = presence_marker(node.is_required)
    if marker is not None:
        form['isRequired'] = marker
    return form


def param_to_form(param: RequestParam) -> Dict[str, Any]:
    """Map a request parameter to its form row."""
    form: Dict[str, Any] = {
        'name': param.name,
        'type': param.type.value,
        'example': param.example,
        'description': param.description,
    }
    marker = presence_marker(param.is_required)
    if marker is not None:
        form['isRequired'] = marker
    return form


def _params_to_form(rows: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    return [param_to_form(RequestParam.model_validate(row)) for row in rows or []]


def api_to_form(api: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build edit-session default values from a stored API document.

    Args:
        api: Document in persisted shape (see ApiData.to_dict)

    Returns:
        Form dictionary; bodyJson and response are present only when the
        document carries them

    Raises:
        DocumentFormatError: If a schema node or parameter row cannot be loaded
    """
    try:
        form = _document_to_form(api)
    except (ValueError, KeyError) as e:
        error = DocumentFormatError(str(api.get('name') or ''), e)
        log_error_with_context(error, "Loading API document")
        raise error from e

    logger.debug(f"Prepared form defaults for API '{form['name']}'")
    return form


def _document_to_form(api: Dict[str, Any]) -> Dict[str, Any]:
    form: Dict[str, Any] = {
        'name': api.get('name') or "",
        'path': api.get('path') or "",
        'method': api.get('method'),
        'description': api.get('description') or "",
        'bodyType': api.get('bodyType'),
        QUERY_PARAMS_PREFIX: _params_to_form(api.get('queryParams')),
        HEADERS_PREFIX: _params_to_form(api.get('headers')),
        BODY_FORM_PREFIX: _params_to_form(api.get('bodyForm')),
        'bodyRaw': {
            'example': (api.get('bodyRaw') or {}).get('example') or "",
            'description': (api.get('bodyRaw') or {}).get('description') or "",
        },
    }

    body_json = api.get('bodyJson')
    if body_json:
        form[BODY_JSON_PREFIX] = node_to_form(node_from_dict(body_json))

    response = (api.get('response') or {}).get(SUCCESS_STATUS)
    if response:
        form[RESPONSE_PREFIX] = node_to_form(node_from_dict(response))
    return form


def form_to_fields(form: Dict[str, Any], prefix: str = "") -> FlatPairs:
    """
    Flatten form defaults into the (path, value) pairs used to pre-populate
    flat inputs.

    Args:
        form: Form dictionary (node_to_form or api_to_form output)
        prefix: Path the form is bound to, e.g. 'bodyJson'

    Returns:
        List of (path, value) pairs
    """
    return flatten(form, prefix)
