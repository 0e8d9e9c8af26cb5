"""
Session state management for the Streamlit API schema editor.

The ApiEditor of the API being edited lives in st.session_state; switching to
another API or closing the form unmounts it, which discards its rows.
"""

import streamlit as st
from typing import Any, Dict, Optional
import logging

from .config_loader import get_config_value
from .editor_session import ApiEditor
from .schema_node import BodyType, RequestMethod

logger = logging.getLogger(__name__)

EDITOR_KEY = 'api_editor'
CURRENT_API_KEY = 'current_api_id'
ERRORS_KEY = 'form_errors'


class SessionManager:
    """Manages the editor session stored in Streamlit session state."""

    @staticmethod
    def initialize():
        """Initialize session state keys without overwriting existing ones."""
        defaults = {
            EDITOR_KEY: None,
            CURRENT_API_KEY: None,
            ERRORS_KEY: {},
        }
        for key, default_value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default_value

    @staticmethod
    def mount_editor(api_id: str, api: Optional[Dict[str, Any]] = None) -> ApiEditor:
        """
        Open an editor session for api_id, replacing any mounted one.

        Args:
            api_id: Identifier of the API being edited
            api: Stored document for an edit form, None for a creation form

        Returns:
            The mounted ApiEditor
        """
        SessionManager.unmount_editor()

        editor_defaults = {
            'default_method': RequestMethod(get_config_value('editor', 'default_method', RequestMethod.GET.value)),
            'default_body_type': BodyType(get_config_value('editor', 'default_body_type', BodyType.FORM.value)),
        }
        if api is None:
            editor = ApiEditor(api_id, **editor_defaults)
        else:
            editor = ApiEditor.for_api(api_id, api, **editor_defaults)

        st.session_state[EDITOR_KEY] = editor
        st.session_state[CURRENT_API_KEY] = api_id
        st.session_state[ERRORS_KEY] = {}
        logger.info(f"Mounted editor for API '{api_id}'")
        return editor

    @staticmethod
    def get_editor() -> Optional[ApiEditor]:
        """Return the mounted editor, if any."""
        if EDITOR_KEY not in st.session_state:
            return None
        return st.session_state[EDITOR_KEY]

    @staticmethod
    def get_current_api_id() -> Optional[str]:
        if CURRENT_API_KEY not in st.session_state:
            return None
        return st.session_state[CURRENT_API_KEY]

    @staticmethod
    def unmount_editor() -> bool:
        """
        Discard the mounted editor and its rows.

        Returns:
            True if an editor was mounted
        """
        editor = SessionManager.get_editor()
        if editor is None:
            return False

        if editor.has_unsaved_changes():
            logger.warning(f"Discarding unsaved changes for API '{editor.api_id}'")
        st.session_state[EDITOR_KEY] = None
        st.session_state[CURRENT_API_KEY] = None
        st.session_state[ERRORS_KEY] = {}
        logger.info(f"Unmounted editor for API '{editor.api_id}'")
        return True

    @staticmethod
    def set_errors(errors: Dict[str, str]):
        st.session_state[ERRORS_KEY] = dict(errors)

    @staticmethod
    def get_errors() -> Dict[str, str]:
        if ERRORS_KEY not in st.session_state:
            return {}
        return st.session_state[ERRORS_KEY]
