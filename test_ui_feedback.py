"""
Unit tests for ui_feedback module.
"""

from unittest.mock import patch, call

from api_editor.ui_feedback import Notify, format_error_lines, show_field_errors


class TestNotify:
    """Test class for toast notifications."""

    @patch('streamlit.toast')
    def test_success_toast(self, mock_toast):
        Notify.success("Saved")
        mock_toast.assert_called_once_with("Saved", icon='✅')

    @patch('streamlit.toast')
    def test_unknown_type_uses_info_icon(self, mock_toast):
        Notify._display_notification("Hi", 'other')
        mock_toast.assert_called_once_with("Hi", icon='ℹ️')


class TestFieldErrors:
    """Test class for error report display."""

    def test_format_error_lines(self):
        lines = format_error_lines({'path': 'Field required', '_form': 'Save failed', 'name': 'Too short'})
        assert lines == ['Save failed', 'name: Too short', 'path: Field required']

    @patch('streamlit.markdown')
    @patch('streamlit.error')
    def test_show_field_errors(self, mock_error, mock_markdown):
        show_field_errors({'method': 'Field required'})
        mock_error.assert_called_once()
        mock_markdown.assert_has_calls([call("- `method: Field required`")])

    @patch('streamlit.error')
    def test_no_errors_shows_nothing(self, mock_error):
        show_field_errors({})
        mock_error.assert_not_called()
