"""
Editor session state for the API schema editor.

Holds everything a user edits on the API form, independent of any widget
toolkit:

- NodeRow / TreeEditor: the recursive schema tree editor. Every row owns an
  IdSequencer for its child rows, so rows keep a stable identity while
  siblings are inserted or removed.
- ParamRow / ParamTable: the flat parameter tables (query, headers, form body).
- ApiEditor: the whole form, its flat submission and the save workflow.

Rows are addressed by id; form paths are positional and computed only when
the session emits its fields.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .diff_utils import calculate_diff, changed_paths, get_change_summary, has_changes
from .example_builder import build_example
from .exceptions import FieldLockedError, SchemaFormError, SubmissionInProgressError, log_error_with_context
from .form_adapter import PRESENCE_MARKER, api_to_form
from .form_paths import (
    ARRAY_ELEM_KEY,
    BODY_FORM_PREFIX,
    BODY_JSON_PREFIX,
    HEADERS_PREFIX,
    QUERY_PARAMS_PREFIX,
    RESPONSE_PREFIX,
    FlatPairs,
    array_elem_path,
    attribute_path,
    child_path,
    param_path,
    unflatten,
)
from .normalizer import FORM_ERROR_KEY, NormalizationResult, parse_api_form, parse_schema_fields
from .row_ids import IdSequencer
from .schema_node import (
    ARRAY_ELEM_NAME,
    BODY_FORM_PARAM_TYPES,
    ROOT_NODE_NAME,
    ApiData,
    BodyType,
    NodeType,
    ParamType,
    RequestMethod,
)

logger = logging.getLogger(__name__)

CONTAINER_TYPES = (NodeType.OBJECT, NodeType.ARRAY)

SaveSchema = Callable[[str, Dict[str, Any]], Any]


class NodeRow:
    """
    One editable row of the schema tree editor.

    A row's child rows and its array element row only exist once the row is
    touched: the root always is, a row loaded with a name is, and any row
    becomes touched when its type is changed or a child is added.
    """

    def __init__(self, depth: int = 0, is_array_elem: bool = False, is_mock: bool = False,
                 defaults: Optional[Dict[str, Any]] = None):
        defaults = defaults or {}
        self.depth = depth
        self.is_array_elem = is_array_elem
        self.is_mock = is_mock

        if self.is_root:
            self.name = ROOT_NODE_NAME
        elif is_array_elem:
            self.name = ARRAY_ELEM_NAME
        else:
            self.name = defaults.get('name') or ""

        self.type = NodeType(defaults.get('type') or (NodeType.OBJECT if self.is_root else NodeType.STRING))
        self.is_required = False if is_array_elem else defaults.get('isRequired') is not None
        self.example = defaults.get('example') or ""
        self.mock = defaults.get('mock') or ""
        self.description = defaults.get('description') or ""
        self.is_open = True
        self.touched = self.is_root or bool(defaults.get('name'))

        default_children = defaults.get('children') or []
        self.row_ids = IdSequencer.seeded(len(default_children) or 1)
        self._pending_defaults: Dict[int, Dict[str, Any]] = dict(zip(self.row_ids, default_children))
        self._pending_array_elem: Optional[Dict[str, Any]] = defaults.get('arrayElem')
        self._child_rows: Dict[int, "NodeRow"] = {}
        self._array_elem_row: Optional["NodeRow"] = None

    @property
    def is_root(self) -> bool:
        return self.depth == 0

    @property
    def value_attribute(self) -> str:
        """Attribute the example/mock input writes to."""
        return 'mock' if self.is_mock else 'example'

    @property
    def value(self) -> str:
        return self.mock if self.is_mock else self.example

    @property
    def shows_children(self) -> bool:
        return self.type == NodeType.OBJECT

    @property
    def shows_array_elem(self) -> bool:
        return self.type == NodeType.ARRAY

    # Field edits

    def set_name(self, name: str) -> None:
        if self.is_root:
            raise FieldLockedError('name', f"the root node is always named '{ROOT_NODE_NAME}'")
        if self.is_array_elem:
            raise FieldLockedError('name', f"array elements are always named '{ARRAY_ELEM_NAME}'")
        self.name = name

    def set_required(self, flag: bool) -> None:
        if self.is_array_elem:
            raise FieldLockedError('isRequired', "array elements cannot be required")
        self.is_required = bool(flag)

    def set_type(self, node_type: Union[NodeType, str]) -> None:
        self.type = NodeType(node_type)
        self.touched = True

    def set_value(self, text: str) -> None:
        if self.type in CONTAINER_TYPES:
            raise FieldLockedError(self.value_attribute, f"{self.type.value.lower()} nodes take no {self.value_attribute}")
        if self.is_mock:
            self.mock = text
        else:
            self.example = text

    def set_description(self, text: str) -> None:
        self.description = text

    def toggle_open(self) -> bool:
        self.is_open = not self.is_open
        return self.is_open

    # Sub-rows

    def _row_for(self, row_id: int) -> "NodeRow":
        row = self._child_rows.get(row_id)
        if row is None:
            row = NodeRow(
                depth=self.depth + 1,
                is_mock=self.is_mock,
                defaults=self._pending_defaults.pop(row_id, None)
            )
            self._child_rows[row_id] = row
        return row

    @property
    def child_ids(self) -> List[int]:
        return list(self.row_ids) if self.touched else []

    @property
    def children(self) -> List["NodeRow"]:
        """Child rows in display order (empty until the row is touched)."""
        return [self._row_for(row_id) for row_id in self.child_ids]

    def child(self, row_id: int) -> "NodeRow":
        if not self.touched or row_id not in self.row_ids:
            raise KeyError(f"No child row with id {row_id}")
        return self._row_for(row_id)

    @property
    def array_elem(self) -> Optional["NodeRow"]:
        """Element schema row (None until the row is touched)."""
        if not self.touched:
            return None
        if self._array_elem_row is None:
            self._array_elem_row = NodeRow(
                depth=self.depth + 1,
                is_array_elem=True,
                is_mock=self.is_mock,
                defaults=self._pending_array_elem
            )
            self._pending_array_elem = None
        return self._array_elem_row

    def add_child(self) -> "NodeRow":
        """Append a new child row."""
        self.touched = True
        self.row_ids = self.row_ids.push()
        logger.debug(f"Added child row {self.row_ids.last_allocated} at depth {self.depth + 1}")
        return self._row_for(self.row_ids.last_allocated)

    def insert_child_after(self, row_id: int) -> "NodeRow":
        """Insert a new child row right after row_id (append if unknown)."""
        self.touched = True
        self.row_ids = self.row_ids.insert_after(row_id)
        logger.debug(f"Inserted child row {self.row_ids.last_allocated} after {row_id}")
        return self._row_for(self.row_ids.last_allocated)

    def insert_child_at(self, index: int) -> "NodeRow":
        """Insert a new child row at index (append if out of range)."""
        self.touched = True
        self.row_ids = self.row_ids.insert_at(index)
        return self._row_for(self.row_ids.last_allocated)

    def remove_child(self, row_id: int) -> None:
        """Remove a child row; the last row is replaced by a fresh empty one."""
        self.row_ids = self.row_ids.remove_and_ensure_non_empty(row_id)
        self._child_rows.pop(row_id, None)
        self._pending_defaults.pop(row_id, None)
        logger.debug(f"Removed child row {row_id}, {len(self.row_ids)} rows left")

    def emit_fields(self, prefix: str) -> FlatPairs:
        """
        Return the (path, value) pairs this row and its sub-rows submit.

        Locked inputs (root name, array element name and required box) and the
        example/mock input of container rows are not transmitted, nor is an
        unchecked required box. Sub-rows hidden by the current type are.
        """
        pairs: FlatPairs = []
        if not (self.is_root or self.is_array_elem):
            pairs.append((attribute_path(prefix, 'name'), self.name))
        if self.is_required and not self.is_array_elem:
            pairs.append((attribute_path(prefix, 'isRequired'), PRESENCE_MARKER))
        pairs.append((attribute_path(prefix, 'type'), self.type.value))
        if self.type not in CONTAINER_TYPES:
            pairs.append((attribute_path(prefix, self.value_attribute), self.value))
        pairs.append((attribute_path(prefix, 'description'), self.description))

        if self.touched:
            pairs.extend(self.array_elem.emit_fields(array_elem_path(prefix)))
            for index, child in enumerate(self.children):
                pairs.extend(child.emit_fields(child_path(prefix, index)))
        return pairs


class TreeEditor:
    """Schema tree editor bound to a form prefix (bodyJson or response)."""

    def __init__(self, prefix: str, is_mock: bool = False, default_values: Optional[Dict[str, Any]] = None):
        self.prefix = prefix
        self.is_mock = is_mock
        self.root = NodeRow(is_mock=is_mock, defaults=default_values)

    def find(self, row_path: Sequence[Union[int, str]]) -> NodeRow:
        """
        Locate a row by the ids leading to it.

        Args:
            row_path: Child row ids, with ARRAY_ELEM_KEY for an element row

        Returns:
            The addressed row (the root for an empty path)
        """
        row = self.root
        for step in row_path:
            if step == ARRAY_ELEM_KEY:
                if row.array_elem is None:
                    raise KeyError(f"Row at depth {row.depth} has no element row")
                row = row.array_elem
            else:
                row = row.child(step)
        return row

    def emit_fields(self) -> FlatPairs:
        return self.root.emit_fields(self.prefix)

    def preview(self) -> NormalizationResult:
        """Normalize the current tree without submitting the form."""
        return parse_schema_fields(self.emit_fields(), self.prefix)

    def example(self) -> Any:
        """
        Build an example document from the current tree.

        Raises:
            ValueError: If the tree does not validate
        """
        result = self.preview()
        if not result.is_valid:
            raise ValueError(f"Schema tree is invalid: {result.errors}")
        return build_example(result.data, use_mock=self.is_mock)


class ParamRow:
    """One row of a flat parameter table."""

    def __init__(self, defaults: Optional[Dict[str, Any]] = None, default_type: ParamType = ParamType.STRING):
        defaults = defaults or {}
        self.name = defaults.get('name') or ""
        self.type = ParamType(defaults.get('type') or default_type)
        self.is_required = defaults.get('isRequired') is not None
        self.example = defaults.get('example') or ""
        self.description = defaults.get('description') or ""


class ParamTable:
    """Flat parameter table; rows are keyed by sequencer ids."""

    def __init__(self, prefix: str, types: Optional[Sequence[ParamType]] = None,
                 default_rows: Optional[List[Dict[str, Any]]] = None):
        self.prefix = prefix
        self.types = tuple(ParamType(param_type) for param_type in types) if types else None
        default_rows = list(default_rows or [])

        self.row_ids = IdSequencer.seeded(len(default_rows) or 1)
        self._rows: Dict[int, ParamRow] = {}
        for row_id, defaults in zip(self.row_ids, default_rows or [None]):
            self._rows[row_id] = self._new_row(defaults)

    def _new_row(self, defaults: Optional[Dict[str, Any]] = None) -> ParamRow:
        row = ParamRow(defaults, self.types[0] if self.types else ParamType.STRING)
        if self.types and row.type not in self.types:
            logger.warning(f"{self.prefix}: type {row.type.value} not offered, using {self.types[0].value}")
            row.type = self.types[0]
        return row

    @property
    def rows(self) -> List[ParamRow]:
        return [self.row(row_id) for row_id in self.row_ids]

    def row(self, row_id: int) -> ParamRow:
        if row_id not in self.row_ids:
            raise KeyError(f"No {self.prefix} row with id {row_id}")
        if row_id not in self._rows:
            self._rows[row_id] = self._new_row()
        return self._rows[row_id]

    def add_row(self) -> ParamRow:
        self.row_ids = self.row_ids.push()
        return self.row(self.row_ids.last_allocated)

    def remove_row(self, row_id: int) -> None:
        self.row_ids = self.row_ids.remove_and_ensure_non_empty(row_id)
        self._rows.pop(row_id, None)

    def emit_fields(self) -> FlatPairs:
        pairs: FlatPairs = []
        for index, row in enumerate(self.rows):
            pairs.append((param_path(self.prefix, index, 'name'), row.name))
            if row.is_required:
                pairs.append((param_path(self.prefix, index, 'isRequired'), PRESENCE_MARKER))
            if self.types:
                pairs.append((param_path(self.prefix, index, 'type'), row.type.value))
            pairs.append((param_path(self.prefix, index, 'example'), row.example))
            pairs.append((param_path(self.prefix, index, 'description'), row.description))
        return pairs


@dataclass
class SubmitResult:
    """
    Outcome of ApiEditor.submit.

    Attributes:
        success: True when the document was normalized and saved
        errors: Form path -> message (FORM_ERROR_KEY for save failures)
        data: The saved document on success
    """

    success: bool
    errors: Dict[str, str] = field(default_factory=dict)
    data: Optional[ApiData] = None


class ApiEditor:
    """
    Edit session for one API document.

    Pass default_values (api_to_form output) to edit an existing document, or
    leave them out for a blank creation form.
    """

    def __init__(self, api_id: str, default_values: Optional[Dict[str, Any]] = None,
                 default_method: Union[RequestMethod, str] = RequestMethod.GET,
                 default_body_type: Union[BodyType, str] = BodyType.FORM):
        defaults = default_values or {}
        body_raw = defaults.get('bodyRaw') or {}

        self.api_id = api_id
        self.name = defaults.get('name') or ""
        self.path = defaults.get('path') or ""
        self.method = str(defaults.get('method') or RequestMethod(default_method).value)
        self.description = defaults.get('description') or ""
        self.body_type = str(defaults.get('bodyType') or BodyType(default_body_type).value)
        self.body_raw_example = body_raw.get('example') or ""
        self.body_raw_description = body_raw.get('description') or ""

        self.query_params = ParamTable(QUERY_PARAMS_PREFIX, default_rows=defaults.get(QUERY_PARAMS_PREFIX))
        self.headers = ParamTable(HEADERS_PREFIX, default_rows=defaults.get(HEADERS_PREFIX))
        self.body_form = ParamTable(BODY_FORM_PREFIX, types=BODY_FORM_PARAM_TYPES,
                                    default_rows=defaults.get(BODY_FORM_PREFIX))
        self.body_json = TreeEditor(BODY_JSON_PREFIX, is_mock=False, default_values=defaults.get(BODY_JSON_PREFIX))
        self.response = TreeEditor(RESPONSE_PREFIX, is_mock=True, default_values=defaults.get(RESPONSE_PREFIX))

        self.errors: Dict[str, str] = {}
        self._submitting = False
        self._baseline = self._form_state()
        logger.info(f"Editor session opened for API '{api_id}' ({'edit' if defaults else 'create'})")

    @classmethod
    def for_api(cls, api_id: str, api: Dict[str, Any], **kwargs: Any) -> "ApiEditor":
        """Open an edit session pre-populated from a stored document."""
        return cls(api_id, api_to_form(api), **kwargs)

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def tree(self, prefix: str) -> TreeEditor:
        if prefix == BODY_JSON_PREFIX:
            return self.body_json
        if prefix == RESPONSE_PREFIX:
            return self.response
        raise KeyError(f"Unknown schema tree '{prefix}'")

    def to_form_data(self) -> FlatPairs:
        """Return the flat (path, value) pairs the form submits."""
        pairs: FlatPairs = [
            ('name', self.name),
            ('path', self.path),
            ('method', self.method),
            ('description', self.description),
            ('bodyType', self.body_type),
            ('bodyRaw.example', self.body_raw_example),
            ('bodyRaw.description', self.body_raw_description),
        ]
        pairs.extend(self.query_params.emit_fields())
        pairs.extend(self.headers.emit_fields())
        pairs.extend(self.body_form.emit_fields())
        pairs.extend(self.body_json.emit_fields())
        pairs.extend(self.response.emit_fields())
        return pairs

    def _form_state(self) -> Dict[str, Any]:
        return unflatten(self.to_form_data())

    def pending_changes(self) -> List[str]:
        """Form paths changed since the session opened or was last saved."""
        return changed_paths(calculate_diff(self._baseline, self._form_state()))

    def has_unsaved_changes(self) -> bool:
        return has_changes(calculate_diff(self._baseline, self._form_state()))

    def change_summary(self) -> str:
        return get_change_summary(calculate_diff(self._baseline, self._form_state()))

    def preview_example(self, prefix: str) -> Any:
        """Example document for the bodyJson or response tree."""
        return self.tree(prefix).example()

    def submit(self, save_schema: SaveSchema) -> SubmitResult:
        """
        Normalize the form and hand the document to the persistence collaborator.

        The session's rows are never modified here: a validation failure or a
        failed save leaves every edit in place.

        Args:
            save_schema: Callable taking (api_id, persisted document)

        Returns:
            SubmitResult

        Raises:
            SubmissionInProgressError: If a submission is already outstanding
        """
        if self._submitting:
            raise SubmissionInProgressError(self.api_id)

        self._submitting = True
        try:
            result = parse_api_form(self.to_form_data())
            if not result.is_valid:
                self.errors = result.errors
                logger.warning(f"Submission for API '{self.api_id}' rejected: {len(result.errors)} errors")
                return SubmitResult(False, result.errors)

            try:
                save_schema(self.api_id, result.data.to_dict())
            except Exception as e:
                if isinstance(e, SchemaFormError):
                    log_error_with_context(e, f"Saving API '{self.api_id}'")
                else:
                    logger.error(f"Saving API '{self.api_id}' failed: {e}", exc_info=True)
                self.errors = {FORM_ERROR_KEY: str(e)}
                return SubmitResult(False, dict(self.errors))

            self.errors = {}
            self._baseline = self._form_state()
            logger.info(f"Saved API '{self.api_id}'")
            return SubmitResult(True, {}, result.data)
        finally:
            self._submitting = False
