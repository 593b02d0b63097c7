# ─────────────────────────────────────────────────────────────────
# alerts.py - Logging Setup & Email Notifications
#
# All outbound email goes through EmailSender.send(). Routes and the
# scheduled distribution job only know that contract:
#   send(recipient, subject, body_html, sender) → EmailResult(ok, id)
#
# With RESEND_API_KEY set, mail is posted to the Resend API.
# Without it, the email is written to the log instead so local runs
# and tests never hit the network.
# ─────────────────────────────────────────────────────────────────

import logging
from typing import Any, Mapping, Optional

import httpx
from pydantic import BaseModel

from config import settings

# ── LOGGING CONFIGURATION ─────────────────────────────────────────
# %(asctime)s    → timestamp e.g. "2026-03-01 10:34:22"
# %(levelname)s  → severity e.g. "INFO", "ERROR"
# %(name)s       → which logger sent this e.g. "gateway"
# %(message)s    → the message itself
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
)

logger = logging.getLogger("alerts")


class EmailResult(BaseModel):
    ok: bool
    id: Optional[str] = None
    error: Optional[str] = None


class EmailSender:
    def __init__(self, api_key: Optional[str], api_url: str, timeout: float = 10.0):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    async def send(self, recipient: str, subject: str, body_html: str, sender: str) -> EmailResult:
        """
        Deliver one email.

        Never raises: provider errors and network failures are logged
        and reported as EmailResult(ok=False).
        """
        if not self.api_key:
            simulate_email(recipient, subject, body_html, sender)
            return EmailResult(ok=True)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={"from": sender, "to": recipient, "subject": subject, "html": body_html},
                )
        except httpx.HTTPError as e:
            logger.error(f"📧 Email to {recipient} failed: {e}")
            return EmailResult(ok=False, error=str(e))

        if response.status_code >= 300:
            logger.error(f"📧 Email provider refused mail to {recipient} ({response.status_code}): {response.text}")
            return EmailResult(ok=False, error=f"provider returned {response.status_code}")

        try:
            reply = response.json()
        except ValueError:
            reply = None
        # Accepted even when the reply carries no JSON id
        email_id = reply.get("id") if isinstance(reply, dict) else None
        logger.info(f"📧 Email sent to {recipient} | id: {email_id}")
        return EmailResult(ok=True, id=email_id)


def simulate_email(recipient: str, subject: str, body_html: str, sender: str):
    """Log exactly what would have been sent."""
    logger.info("=" * 55)
    logger.info("📧 SIMULATING EMAIL (no RESEND_API_KEY configured)")
    logger.info(f"   To:      {recipient}")
    logger.info(f"   Subject: {subject}")
    logger.info(f"   Body:    {body_html}")
    logger.info(f"   From:    {sender}")
    logger.info("=" * 55)


def build_alert_email(alert_row: Mapping[str, Any]) -> tuple[str, str]:
    """Subject and HTML body for a row of the alert table."""
    subject = f"Alert: {alert_row['severity']}"
    return subject, alert_row["message"]


email_sender = EmailSender(settings.resend_api_key, settings.email_api_url, timeout=settings.http_timeout)


def get_email_sender() -> EmailSender:
    return email_sender
