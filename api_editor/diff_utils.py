"""
Diff utilities for the API schema editor.

Compares two nested form states with DeepDiff and reports the changes keyed
by flat form path, so the editor can tell whether a session has unsaved
changes and which fields they touch.
"""

from typing import Dict, Any, List
from deepdiff import DeepDiff
import re
import logging

from .form_paths import format_path

logger = logging.getLogger(__name__)

_PATH_TOKEN_PATTERN = re.compile(r"\['([^']*)'\]|\[(\d+)\]")

_ADDED_TYPES = ('dictionary_item_added', 'iterable_item_added')
_REMOVED_TYPES = ('dictionary_item_removed', 'iterable_item_removed')
_CHANGED_TYPES = ('values_changed', 'type_changes')


def _to_form_path(deepdiff_path: str) -> str:
    """Convert a DeepDiff path like root['a'][0]['b'] to a form path a[0].b."""
    parts: List[Any] = []
    for key, index in _PATH_TOKEN_PATTERN.findall(str(deepdiff_path)):
        if index:
            parts.append(int(index))
        else:
            parts.append(key)
    return format_path(parts) or "root"


def calculate_diff(original: Dict[str, Any], modified: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Calculate differences between two nested form states.

    Args:
        original: Form state at mount or last save
        modified: Current form state

    Returns:
        Dict keyed by DeepDiff change type (values_changed,
        dictionary_item_added, ...) mapping form path -> change detail
    """
    diff = DeepDiff(original, modified, ignore_order=False, verbose_level=2)

    result: Dict[str, Dict[str, Any]] = {}
    for change_type, changes in diff.items():
        if isinstance(changes, dict):
            result[change_type] = {_to_form_path(path): detail for path, detail in changes.items()}
        else:
            result[change_type] = {_to_form_path(path): None for path in changes}

    logger.debug(f"Form diff: {sum(len(changes) for changes in result.values())} changes")
    return result


def has_changes(diff: Dict[str, Dict[str, Any]]) -> bool:
    """Return True if the diff contains any change."""
    return any(bool(changes) for changes in diff.values())


def changed_paths(diff: Dict[str, Dict[str, Any]]) -> List[str]:
    """Return the sorted form paths touched by a diff."""
    paths = set()
    for changes in diff.values():
        paths.update(changes.keys())
    return sorted(paths)


def get_change_summary(diff: Dict[str, Dict[str, Any]]) -> str:
    """
    Summarize a diff for display.

    Args:
        diff: Output of calculate_diff

    Returns:
        Short human-readable summary
    """
    if not has_changes(diff):
        return "No changes"

    changed = sum(len(diff.get(change_type, {})) for change_type in _CHANGED_TYPES)
    added = sum(len(diff.get(change_type, {})) for change_type in _ADDED_TYPES)
    removed = sum(len(diff.get(change_type, {})) for change_type in _REMOVED_TYPES)

    parts = []
    if changed:
        parts.append(f"{changed} changed")
    if added:
        parts.append(f"{added} added")
    if removed:
        parts.append(f"{removed} removed")
    return ", ".join(parts)
