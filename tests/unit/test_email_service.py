"""
Unit tests for EmailService.

Resend is patched so nothing is sent.
"""

from unittest.mock import patch

from app.services.email import EmailService


class TestEmailService:
    """Test EmailService functionality."""

    def test_send_email_basic(self):
        """Emails go out through Resend with the configured sender."""
        # Arrange: Mock the Resend API
        with patch("resend.Emails.send") as mock_send:
            mock_send.return_value = {"id": "email_id_123"}

            # Act
            result = EmailService().send_email(
                to_email="test@example.com",
                subject="Test Subject",
                html_content="<h1>Test Content</h1>",
            )

            # Assert
            mock_send.assert_called_once()
            params = mock_send.call_args[0][0]
            assert params["to"] == ["test@example.com"]
            assert params["subject"] == "Test Subject"
            assert params["html"] == "<h1>Test Content</h1>"
            assert "from" in params
            assert "cc" not in params
            assert result["id"] == "email_id_123"

    def test_send_email_with_optional_parameters(self):
        with patch("resend.Emails.send") as mock_send:
            mock_send.return_value = {"id": "email_id_456"}

            EmailService().send_email(
                to_email="test@example.com",
                subject="Test Subject",
                html_content="<p>Body</p>",
                cc=["cc@example.com"],
                reply_to="reply@example.com",
            )

            params = mock_send.call_args[0][0]
            assert params["cc"] == ["cc@example.com"]
            assert params["reply_to"] == "reply@example.com"

    def test_password_reset_code_email(self):
        """
        The reset email carries the code and greets the user by username.
        """
        with patch("resend.Emails.send") as mock_send:
            mock_send.return_value = {"id": "email_id_789"}

            EmailService().send_password_reset_code("test@example.com", "123456", "testuser")

            params = mock_send.call_args[0][0]
            assert params["to"] == ["test@example.com"]
            assert "password reset" in params["subject"].lower()
            assert "123456" in params["html"]
            assert "testuser" in params["html"]
