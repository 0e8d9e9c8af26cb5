"""
Main Streamlit application for the API schema editor.
Create and edit API documents: request parameters, request body and the
success response schema.
"""

import streamlit as st
import logging

from api_editor.api_store import ApiStore
from api_editor.config_loader import get_config_value, get_logging_level
from api_editor.editor_session import ApiEditor, NodeRow, ParamTable, TreeEditor
from api_editor.exceptions import SchemaFormError, SubmissionInProgressError
from api_editor.schema_node import BodyType, NodeType, ParamType, RequestMethod
from api_editor.session_manager import SessionManager
from api_editor.ui_feedback import Notify, show_field_errors

logging.basicConfig(level=get_logging_level())
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title=get_config_value('ui', 'page_title', 'API Schema Editor'),
    page_icon="🧩",
    layout="wide"
)

NODE_TYPES = [node_type.value for node_type in NodeType]
METHODS = [method.value for method in RequestMethod]
BODY_TYPES = [body_type.value for body_type in BodyType]


def _index_of(options, value) -> int:
    return options.index(value) if value in options else 0


def render_node_row(tree: TreeEditor, row: NodeRow, key: str, parent: NodeRow = None, row_id: int = None):
    """Render one tree row and, recursively, its visible sub-rows."""
    cols = st.columns([1, 3, 2, 1, 3, 3, 2])
    if cols[0].button("▾" if row.is_open else "▸", key=f"{key}-open"):
        row.toggle_open()
        st.rerun()

    locked_name = row.is_root or row.is_array_elem
    name = cols[1].text_input("Name", value=row.name, key=f"{key}-name", disabled=locked_name,
                              label_visibility="collapsed", placeholder="name")
    if not locked_name:
        row.set_name(name)

    node_type = cols[2].selectbox("Type", NODE_TYPES, index=_index_of(NODE_TYPES, row.type.value),
                                  key=f"{key}-type", label_visibility="collapsed")
    if node_type != row.type.value:
        row.set_type(node_type)
        st.rerun()

    required = cols[3].checkbox("Required", value=row.is_required, key=f"{key}-required",
                                disabled=row.is_array_elem)
    if not row.is_array_elem:
        row.set_required(required)

    container = row.type in (NodeType.OBJECT, NodeType.ARRAY)
    value = cols[4].text_input(row.value_attribute.capitalize(), value=row.value, key=f"{key}-value",
                               disabled=container, label_visibility="collapsed",
                               placeholder=row.value_attribute)
    if not container:
        row.set_value(value)

    row.set_description(cols[5].text_input("Description", value=row.description, key=f"{key}-description",
                                           label_visibility="collapsed", placeholder="description"))

    with cols[6]:
        if parent is not None and not row.is_array_elem:
            if st.button("＋", key=f"{key}-insert", help="Insert a sibling below"):
                parent.insert_child_after(row_id)
                st.rerun()
            if st.button("－", key=f"{key}-remove", help="Remove this row"):
                parent.remove_child(row_id)
                st.rerun()
    if not row.is_open:
        return
    if row.shows_array_elem:
        render_node_row(tree, row.array_elem, f"{key}-elem")
    if row.shows_children:
        for child_id, child in zip(row.child_ids, row.children):
            render_node_row(tree, child, f"{key}-{child_id}", parent=row, row_id=child_id)
        if st.button("Add field", key=f"{key}-add"):
            row.add_child()
            st.rerun()


def render_tree(editor: ApiEditor, tree: TreeEditor, title: str):
    st.markdown(f"**{title}**")
    render_node_row(tree, tree.root, f"{editor.api_id}-{tree.prefix}")
    if st.button("View Example", key=f"{editor.api_id}-{tree.prefix}-example"):
        try:
            st.json(editor.preview_example(tree.prefix))
        except ValueError as e:
            Notify.warn(str(e))


def render_param_table(editor: ApiEditor, table: ParamTable, title: str):
    st.markdown(f"**{title}**")
    for row_id, row in zip(table.row_ids, table.rows):
        key = f"{editor.api_id}-{table.prefix}-{row_id}"
        cols = st.columns([3, 2, 1, 3, 3, 1])
        row.name = cols[0].text_input("Name", value=row.name, key=f"{key}-name",
                                      label_visibility="collapsed", placeholder="name")
        if table.types:
            options = [param_type.value for param_type in table.types]
            row.type = ParamType(cols[1].selectbox("Type", options, index=_index_of(options, row.type.value),
                                                   key=f"{key}-type", label_visibility="collapsed"))
        row.is_required = cols[2].checkbox("Required", value=row.is_required, key=f"{key}-required")
        row.example = cols[3].text_input("Example", value=row.example, key=f"{key}-example",
                                         label_visibility="collapsed", placeholder="example")
        row.description = cols[4].text_input("Description", value=row.description, key=f"{key}-description",
                                             label_visibility="collapsed", placeholder="description")
        if cols[5].button("－", key=f"{key}-remove"):
            table.remove_row(row_id)
            st.rerun()
    if st.button("Add row", key=f"{editor.api_id}-{table.prefix}-add"):
        table.add_row()
        st.rerun()


def render_editor(editor: ApiEditor, store: ApiStore):
    """Render the API form for the mounted editor."""
    key = editor.api_id
    cols = st.columns([2, 3, 1])
    editor.name = cols[0].text_input("Name", value=editor.name, key=f"{key}-name")
    editor.path = cols[1].text_input("Path", value=editor.path, key=f"{key}-path")
    editor.method = cols[2].selectbox("Method", METHODS, index=_index_of(METHODS, editor.method),
                                      key=f"{key}-method")
    editor.description = st.text_area("Description", value=editor.description, key=f"{key}-description")

    request_tab, response_tab = st.tabs(["Request", "Response"])
    with request_tab:
        render_param_table(editor, editor.query_params, "Query parameters")
        render_param_table(editor, editor.headers, "Headers")
        editor.body_type = st.radio("Body type", BODY_TYPES, index=_index_of(BODY_TYPES, editor.body_type),
                                    key=f"{key}-bodyType", horizontal=True)
        if editor.body_type == BodyType.FORM.value:
            render_param_table(editor, editor.body_form, "Form body")
        elif editor.body_type == BodyType.JSON.value:
            render_tree(editor, editor.body_json, "JSON body")
        else:
            editor.body_raw_example = st.text_area("Raw body example", value=editor.body_raw_example,
                                                   key=f"{key}-bodyRaw-example")
            editor.body_raw_description = st.text_input("Raw body description",
                                                        value=editor.body_raw_description,
                                                        key=f"{key}-bodyRaw-description")
    with response_tab:
        render_tree(editor, editor.response, "Response (200)")

    if editor.has_unsaved_changes():
        st.caption(f"Unsaved changes: {editor.change_summary()}")

    if st.button("Save", type="primary", disabled=editor.is_submitting, key=f"{key}-save"):
        try:
            result = editor.submit(store.save_api)
        except SubmissionInProgressError as e:
            Notify.warn(str(e))
            return
        SessionManager.set_errors(result.errors)
        if result.success:
            Notify.success(f"Saved API '{editor.api_id}'")
        else:
            Notify.error("The API could not be saved")

    show_field_errors(SessionManager.get_errors())


def render_sidebar(store: ApiStore):
    st.sidebar.title("APIs")
    api_ids = store.list_apis()
    current = SessionManager.get_current_api_id()

    for api_id in api_ids:
        if st.sidebar.button(api_id, key=f"open-{api_id}", disabled=api_id == current):
            try:
                SessionManager.mount_editor(api_id, store.load_api(api_id))
            except SchemaFormError as e:
                Notify.error(str(e))
            st.rerun()

    st.sidebar.divider()
    new_id = st.sidebar.text_input("New API id", key="new-api-id")
    if st.sidebar.button("Create", disabled=not new_id.strip()):
        if new_id.strip() in api_ids:
            Notify.warn(f"API '{new_id.strip()}' already exists")
        else:
            SessionManager.mount_editor(new_id.strip())
            st.rerun()

    if current and st.sidebar.button("Close editor"):
        SessionManager.unmount_editor()
        st.rerun()


def main():
    """Main application entry point."""
    SessionManager.initialize()
    store = ApiStore()

    render_sidebar(store)

    editor = SessionManager.get_editor()
    if editor is None:
        st.title(get_config_value('ui', 'page_title', 'API Schema Editor'))
        st.info("Select an API in the sidebar or create a new one.")
        return

    st.title(f"API: {editor.api_id}")
    render_editor(editor, store)


if __name__ == "__main__":
    main()
