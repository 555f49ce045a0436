from typing import Dict, List, Optional

import resend

from app.core.config import settings

LAYOUT = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2>{heading}</h2>
    <p>Hi {username},</p>
    {body}
    <p>See you at training,<br>The Train Team</p>
</div>
"""


class EmailService:
    """Transactional email through Resend."""

    def __init__(self):
        resend.api_key = settings.RESEND_API_KEY
        self.sender = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM}>"

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        cc: Optional[List[str]] = None,
        reply_to: Optional[str] = None,
    ) -> Dict:
        params = {"from": self.sender, "to": [to_email], "subject": subject, "html": html_content}
        if cc:
            params["cc"] = cc
        if reply_to:
            params["reply_to"] = reply_to
        return resend.Emails.send(params)

    def send_password_reset_code(self, to_email: str, code: str, username: str) -> Dict:
        body = (
            "<p>Use this code to reset your password:</p>"
            f'<p style="font-size: 24px; letter-spacing: 4px;"><strong>{code}</strong></p>'
            f"<p>It expires in {settings.PASSWORD_RESET_CODE_EXPIRE_MINUTES} minutes. "
            "If you did not ask for a reset, ignore this email.</p>"
        )
        html = LAYOUT.format(heading="Reset your password", username=username, body=body)
        return self.send_email(to_email, "Your Train password reset code", html)

    def send_welcome_email(self, to_email: str, username: str) -> Dict:
        """Sent after an account is created through Google sign-in."""
        body = f"<p>Your Train account is linked to Google. Your username is <strong>{username}</strong>.</p>"
        html = LAYOUT.format(heading="Welcome to Train", username=username, body=body)
        return self.send_email(to_email, "Welcome to Train", html)
