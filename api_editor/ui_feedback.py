"""
UI feedback utilities for the API schema editor.
Toast notifications and display of submission error reports.
"""

import streamlit as st
from typing import Dict, Optional
import logging

from .normalizer import FORM_ERROR_KEY

logger = logging.getLogger(__name__)

_ICONS = {
    'success': '✅',
    'info': 'ℹ️',
    'warning': '⚠️',
    'error': '❌'
}


class Notify:
    """
    Toast notification helper.

    Usage:
    Notify.success("API saved")
    Notify.error("Save failed")
    """

    @staticmethod
    def _display_notification(message: str, notification_type: str = 'info') -> None:
        logger.debug(f"Notify ({notification_type}): {message}")
        st.toast(message, icon=_ICONS.get(notification_type, _ICONS['info']))

    @staticmethod
    def success(message: str) -> None:
        Notify._display_notification(message, 'success')

    @staticmethod
    def info(message: str) -> None:
        Notify._display_notification(message, 'info')

    @staticmethod
    def warn(message: str) -> None:
        Notify._display_notification(message, 'warning')

    @staticmethod
    def error(message: str) -> None:
        Notify._display_notification(message, 'error')


def format_error_lines(errors: Dict[str, str]) -> list:
    """
    Render an error report as display lines, form-level errors first.

    Args:
        errors: Form path -> message

    Returns:
        List of strings like "bodyJson.type: Field required"
    """
    lines = []
    if FORM_ERROR_KEY in errors:
        lines.append(errors[FORM_ERROR_KEY])
    for path in sorted(path for path in errors if path != FORM_ERROR_KEY):
        lines.append(f"{path}: {errors[path]}")
    return lines


def show_field_errors(errors: Dict[str, str], title: Optional[str] = None) -> None:
    """Show an error report below the form."""
    if not errors:
        return
    lines = format_error_lines(errors)
    st.error(title or f"{_ICONS['error']} The form has {len(lines)} problem(s)")
    for line in lines:
        st.markdown(f"- `{line}`")
