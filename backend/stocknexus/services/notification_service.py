# Overview: Service-layer operations for outbound email; sends approval emails through the Resend API.

"""
Notifications

Email is best effort. send_approval_email() never raises: a missing API key
or a delivery failure is logged and reported back as a result the caller
can surface ("email could not be sent"), while the approval itself stands.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

import httpx
from flask import current_app


REQUEST_TIMEOUT = 10.0


@dataclass
class EmailResult:
    sent: bool
    message: str
    provider_id: str | None = None

    def to_dict(self) -> dict:
        return {"sent": self.sent, "message": self.message, "provider_id": self.provider_id}


def _approval_body(full_name: str, email: str, temporary_password: str, role: str, department: str) -> str:
    app_url = current_app.config.get("APP_URL") or ""
    return (
        f"<p>Hello {escape(full_name)},</p>"
        f"<p>Your StockNexus registration has been approved as <strong>{escape(role)}</strong> "
        f"in <strong>{escape(department)}</strong>.</p>"
        f"<p>Email: {escape(email)}<br>Temporary password: <code>{escape(temporary_password)}</code></p>"
        f"<p>You will be asked to change this password when you first sign in"
        f"{' at ' + escape(app_url) if app_url else ''}.</p>"
    )


def send_email(to: str, subject: str, html: str) -> EmailResult:
    """POST one message to the Resend API."""
    api_key = current_app.config.get("RESEND_API_KEY")
    if not api_key:
        current_app.logger.warning("RESEND_API_KEY not configured; email to %s not sent", to)
        return EmailResult(sent=False, message="Email service is not configured; email could not be sent")

    payload = {
        "from": current_app.config["MAIL_FROM"],
        "to": [to],
        "subject": subject,
        "html": html,
    }

    try:
        response = httpx.post(
            current_app.config["RESEND_API_URL"],
            json=payload,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        current_app.logger.warning(
            "Email delivery to %s failed: HTTP %s %s",
            to, exc.response.status_code, exc.response.text[:200],
        )
        return EmailResult(sent=False, message="Email could not be sent")
    except httpx.HTTPError as exc:
        current_app.logger.warning("Email delivery to %s failed: %s", to, exc)
        return EmailResult(sent=False, message="Email could not be sent")

    provider_id = None
    try:
        provider_id = response.json().get("id")
    except ValueError:
        pass

    current_app.logger.info("Email sent to %s (%s)", to, subject)
    return EmailResult(sent=True, message="Email sent", provider_id=provider_id)


def send_approval_email(
    *,
    email: str,
    full_name: str,
    temporary_password: str,
    role: str,
    department: str,
) -> EmailResult:
    return send_email(
        to=email,
        subject="Your StockNexus account has been approved",
        html=_approval_body(full_name, email, temporary_password, role, department),
    )
