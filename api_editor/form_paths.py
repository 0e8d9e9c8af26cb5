"""
Flat form path convention for the API schema editor.

The recursive editor renders every input under a positional path such as
``bodyJson.children[2].arrayElem.children[0].name``. Those paths are the only
structural information a form submission carries, so this module defines how
a tree position maps to a path and how a flat bag of (path, value) pairs is
turned back into nested dictionaries and lists.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from .exceptions import FormPathError

logger = logging.getLogger(__name__)

PathPart = Union[str, int]
FlatPairs = List[Tuple[str, Any]]

BODY_JSON_PREFIX = "bodyJson"
RESPONSE_PREFIX = "response"
QUERY_PARAMS_PREFIX = "queryParams"
HEADERS_PREFIX = "headers"
BODY_FORM_PREFIX = "bodyForm"
PATH_PARAMS_PREFIX = "pathParams"

CHILDREN_KEY = "children"
ARRAY_ELEM_KEY = "arrayElem"

_SEGMENT_PATTERN = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)((?:\[\d+\])*)$")
_INDEX_PATTERN = re.compile(r"\[(\d+)\]")


def child_path(prefix: str, index: int) -> str:
    """Path of the child at position index of the node at prefix."""
    return f"{prefix}.{CHILDREN_KEY}[{index}]"


def array_elem_path(prefix: str) -> str:
    """Path of the element schema of the array node at prefix."""
    return f"{prefix}.{ARRAY_ELEM_KEY}"


def attribute_path(prefix: str, attribute: str) -> str:
    """Path of a leaf attribute (name, type, ...) of the node at prefix."""
    return f"{prefix}.{attribute}"


def param_path(group: str, index: int, attribute: str) -> str:
    """Path of an attribute of row index in a flat parameter group."""
    return f"{group}[{index}].{attribute}"


def parse_path(path: str) -> Tuple[PathPart, ...]:
    """
    Split a flat form path into its parts.

    Args:
        path: Path such as 'bodyJson.children[0].name'

    Returns:
        Tuple of field names (str) and list positions (int)

    Raises:
        FormPathError: If the path is empty or a segment is malformed
    """
    if not isinstance(path, str) or not path:
        raise FormPathError(str(path), "path is empty")

    parts: List[PathPart] = []
    for segment in path.split("."):
        match = _SEGMENT_PATTERN.match(segment)
        if not match:
            raise FormPathError(path, f"malformed segment '{segment}'")
        parts.append(match.group(1))
        parts.extend(int(index) for index in _INDEX_PATTERN.findall(match.group(2)))
    return tuple(parts)


def format_path(parts: Sequence[PathPart]) -> str:
    """
    Join path parts back into a flat form path.

    Args:
        parts: Field names and list positions

    Returns:
        Path string; integers render as [n] suffixes
    """
    text = ""
    for part in parts:
        if isinstance(part, int):
            text += f"[{part}]"
        elif text:
            text += f".{part}"
        else:
            text = str(part)
    return text


class _IndexedSlots(dict):
    """Sparse list positions collected while unflattening."""


def _iter_pairs(flat: Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]) -> Iterable[Tuple[str, Any]]:
    if isinstance(flat, Mapping):
        return flat.items()
    return flat


def _assign(root: Dict[str, Any], parts: Tuple[PathPart, ...], value: Any, path: str) -> None:
    container: Dict[Any, Any] = root
    for position, part in enumerate(parts[:-1]):
        next_part = parts[position + 1]
        wants_list = isinstance(next_part, int)
        child = container.get(part)
        if child is None:
            child = _IndexedSlots() if wants_list else {}
            container[part] = child
        elif not isinstance(child, dict):
            raise FormPathError(path, f"'{format_path(parts[:position + 1])}' already holds a value")
        elif wants_list != isinstance(child, _IndexedSlots):
            raise FormPathError(path, f"'{format_path(parts[:position + 1])}' mixes list and field access")
        container = child

    last = parts[-1]
    if isinstance(container.get(last), dict):
        raise FormPathError(path, "path already holds nested fields")
    container[last] = value


def _compact(value: Any) -> Any:
    if isinstance(value, _IndexedSlots):
        return [_compact(value[index]) for index in sorted(value)]
    if isinstance(value, dict):
        return {key: _compact(child) for key, child in value.items()}
    return value


def unflatten(flat: Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]) -> Dict[str, Any]:
    """
    Rebuild nested form data from flat (path, value) pairs.

    List positions are gathered sparsely and compacted in index order, so a
    gap left by a removed row does not produce an empty entry. When the same
    path appears more than once the last value wins.

    Args:
        flat: Mapping of path to value, or an iterable of (path, value) pairs

    Returns:
        Nested dictionary of dictionaries, lists and leaf values

    Raises:
        FormPathError: If a path is malformed, or is used both as a value
            and as a container
    """
    root: Dict[str, Any] = {}
    count = 0
    for path, value in _iter_pairs(flat):
        _assign(root, parse_path(path), value, path)
        count += 1

    logger.debug(f"Unflattened {count} form fields into {len(root)} top-level keys")
    return _compact(root)


def flatten(value: Any, prefix: str = "") -> FlatPairs:
    """
    Flatten nested form data into (path, value) pairs in document order.

    None leaves are skipped, which is how an absent checkbox presence marker
    stays absent on the wire. Empty dictionaries and lists emit nothing.

    Args:
        value: Nested dictionaries, lists and leaf values
        prefix: Path the value is bound to; required when value is a list

    Returns:
        List of (path, value) pairs
    """
    pairs: FlatPairs = []
    _flatten_into(value, prefix, pairs)
    return pairs


def _flatten_into(value: Any, path: str, pairs: FlatPairs) -> None:
    if isinstance(value, dict):
        for key, child in value.items():
            _flatten_into(child, f"{path}.{key}" if path else str(key), pairs)
    elif isinstance(value, (list, tuple)):
        if not path:
            raise FormPathError("", "a list needs a path prefix")
        for index, item in enumerate(value):
            _flatten_into(item, f"{path}[{index}]", pairs)
    elif value is not None:
        if not path:
            raise FormPathError("", "a leaf value needs a path prefix")
        pairs.append((path, value))
