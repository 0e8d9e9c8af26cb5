"""
Normalizer and validator for submitted API edit forms.

A submission is a flat bag of (path, value) pairs. It is unflattened with the
form path convention, validated with pydantic form models, and normalized into
a typed API document:

- the tree root is always named "root", an array element schema is always
  named "items" and is never required;
- any other tree node without a name is dropped together with its subtree;
- children survive only on OBJECT nodes and the element schema only on ARRAY
  nodes;
- parameter rows without a name are dropped.

Normalization is all-or-nothing: the result holds either the document or a
mapping of form path to error message.
"""

import logging
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError, field_validator

from .exceptions import FormPathError
from .form_paths import PATH_PARAMS_PREFIX, PathPart, format_path, unflatten
from .schema_node import (
    ARRAY_ELEM_NAME,
    ROOT_NODE_NAME,
    ApiData,
    BodyRaw,
    BodyType,
    NodeType,
    ParamType,
    RequestMethod,
    RequestParam,
    SchemaNode,
    make_node,
)

logger = logging.getLogger(__name__)

FORM_ERROR_KEY = "_form"

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]
RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
FlatInput = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def _is_present(value: Any) -> bool:
    # Checkbox inputs transmit their presence only; any submitted value means checked.
    return value is not None


def _blank_param_row(row: Any) -> bool:
    return isinstance(row, Mapping) and not str(row.get('name') or '').strip()


class NodeForm(BaseModel):
    """One tree node as submitted by the editor."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    name: Optional[str] = None
    type: NodeType
    description: Optional[str] = None
    example: Optional[str] = None
    mock: Optional[str] = None
    is_required: bool = Field(False, alias='isRequired')
    children: Optional[List["NodeForm"]] = None
    array_elem: Optional["NodeForm"] = Field(None, alias='arrayElem')

    @field_validator('is_required', mode='before')
    @classmethod
    def _presence_marker(cls, value: Any) -> bool:
        return _is_present(value)


class ParamForm(BaseModel):
    """One parameter table row as submitted by the editor."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    name: Optional[TrimmedStr] = None
    example: Optional[TrimmedStr] = None
    description: Optional[TrimmedStr] = None
    is_required: bool = Field(False, alias='isRequired')
    type: Optional[ParamType] = None

    @field_validator('is_required', mode='before')
    @classmethod
    def _presence_marker(cls, value: Any) -> bool:
        return _is_present(value)


class BodyRawForm(BaseModel):
    model_config = ConfigDict(extra='ignore')

    example: TrimmedStr
    description: TrimmedStr


class ApiForm(BaseModel):
    """The whole API edit form."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    name: RequiredStr
    path: RequiredStr
    method: RequestMethod
    description: Optional[TrimmedStr] = None
    # Saved documents always carry an empty pathParams list; submitted rows are checked but not kept.
    path_params: Optional[List[Optional[ParamForm]]] = Field(None, alias=PATH_PARAMS_PREFIX)
    query_params: Optional[List[Optional[ParamForm]]] = Field(None, alias='queryParams')
    headers: Optional[List[Optional[ParamForm]]] = None
    body_type: BodyType = Field(alias='bodyType')
    body_form: Optional[List[Optional[ParamForm]]] = Field(None, alias='bodyForm')
    body_raw: BodyRawForm = Field(alias='bodyRaw')
    body_json: NodeForm = Field(alias='bodyJson')
    response: NodeForm

    @field_validator('path_params', 'query_params', 'headers', 'body_form', mode='before')
    @classmethod
    def _skip_nameless_rows(cls, rows: Any) -> Any:
        # Nameless rows are discarded before their other fields are checked.
        # They become None so the remaining rows keep their submitted index.
        if not isinstance(rows, list):
            return rows
        return [None if _blank_param_row(row) else row for row in rows]


@dataclass
class NormalizationResult:
    """
    Outcome of normalizing a submission.

    Attributes:
        data: Normalized value (ApiData or a schema node); None on failure
        errors: Form path -> message; empty on success
    """

    data: Optional[Any] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def collect_errors(error: ValidationError, prefix: Sequence[PathPart] = ()) -> Dict[str, str]:
    """
    Convert a pydantic ValidationError into a form path -> message report.

    Only the first message is kept for each path.

    Args:
        error: Validation error raised by a form model
        prefix: Path parts the validated value is bound to

    Returns:
        Error report keyed by flat form path
    """
    errors: Dict[str, str] = {}
    for item in error.errors():
        loc = tuple(part for part in item.get('loc', ()) if isinstance(part, (str, int)))
        path = format_path(tuple(prefix) + loc) or FORM_ERROR_KEY
        errors.setdefault(path, item.get('msg', 'Invalid value'))
    return errors


def _normalize_node(form_node: NodeForm, depth: int, is_array_elem: bool) -> Optional[SchemaNode]:
    if depth == 0:
        name = ROOT_NODE_NAME
    elif is_array_elem:
        name = ARRAY_ELEM_NAME
    else:
        name = form_node.name

    if not name:
        return None

    children: List[SchemaNode] = []
    if form_node.type == NodeType.OBJECT:
        for child in form_node.children or []:
            normalized = _normalize_node(child, depth + 1, False)
            if normalized is not None:
                children.append(normalized)

    array_elem = None
    if form_node.type == NodeType.ARRAY and form_node.array_elem is not None:
        array_elem = _normalize_node(form_node.array_elem, depth + 1, True)

    return make_node(
        form_node.type,
        children=children,
        array_elem=array_elem,
        name=name,
        description=form_node.description or "",
        example=form_node.example or "",
        mock=form_node.mock or "",
        is_required=False if is_array_elem else form_node.is_required,
    )


def normalize_tree(form_node: NodeForm) -> SchemaNode:
    """
    Normalize a submitted tree into a typed schema node.

    Args:
        form_node: Validated root of the submitted tree

    Returns:
        Root schema node named "root"
    """
    return _normalize_node(form_node, 0, False)


def normalize_params(params: Optional[Sequence[Optional[ParamForm]]]) -> List[RequestParam]:
    """
    Normalize a parameter group.

    Rows without a name are dropped entirely; surviving rows default to the
    STRING type and empty example/description.

    Args:
        params: Validated parameter rows (None for an absent group)

    Returns:
        List of RequestParam
    """
    result: List[RequestParam] = []
    for row in params or []:
        if row is None or not row.name:
            continue
        result.append(RequestParam(
            name=row.name,
            type=row.type or ParamType.STRING,
            example=row.example or "",
            description=row.description or "",
            is_required=row.is_required,
        ))
    return result


def _unflatten_or_report(flat: FlatInput) -> Tuple[Optional[Dict[str, Any]], Dict[str, str]]:
    try:
        return unflatten(flat), {}
    except FormPathError as e:
        logger.warning(f"Rejected malformed form data: {e}")
        return None, {e.path or FORM_ERROR_KEY: e.issue}


def parse_api_form(flat: FlatInput) -> NormalizationResult:
    """
    Validate and normalize a flat API edit form submission.

    Args:
        flat: Mapping of path to value, or iterable of (path, value) pairs

    Returns:
        NormalizationResult holding an ApiData or an error report
    """
    nested, errors = _unflatten_or_report(flat)
    if errors:
        return NormalizationResult(errors=errors)

    try:
        form = ApiForm.model_validate(nested)
    except ValidationError as e:
        errors = collect_errors(e)
        logger.warning(f"API form validation failed with {len(errors)} errors: {sorted(errors)}")
        return NormalizationResult(errors=errors)

    data = ApiData(
        name=form.name,
        path=form.path,
        method=form.method,
        description=form.description or None,
        path_params=[],
        query_params=normalize_params(form.query_params),
        headers=normalize_params(form.headers),
        body_type=form.body_type,
        body_form=normalize_params(form.body_form),
        body_raw=BodyRaw(example=form.body_raw.example, description=form.body_raw.description),
        body_json=normalize_tree(form.body_json),
        response=normalize_tree(form.response),
    )
    logger.info(f"Normalized API form '{data.name}' ({data.method.value} {data.path})")
    return NormalizationResult(data=data)


def parse_schema_fields(flat: FlatInput, prefix: str) -> NormalizationResult:
    """
    Validate and normalize a single schema tree from a flat bag.

    Args:
        flat: Flat pairs containing the tree under prefix
        prefix: Tree prefix such as 'bodyJson' or 'response'

    Returns:
        NormalizationResult holding the root schema node or an error report
    """
    nested, errors = _unflatten_or_report(flat)
    if errors:
        return NormalizationResult(errors=errors)

    if prefix not in nested:
        return NormalizationResult(errors={prefix: "Field required"})

    try:
        form_node = NodeForm.model_validate(nested[prefix])
    except ValidationError as e:
        return NormalizationResult(errors=collect_errors(e, (prefix,)))

    return NormalizationResult(data=normalize_tree(form_node))
