# ─────────────────────────────────────────────────────────────────
# routes/email.py - Email Endpoints
#
#   POST /api/sendEmail                      → send one email now
#   POST /api/jobs/distribute-notifications  → run the alert email job
# ─────────────────────────────────────────────────────────────────

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from alerts import EmailSender, get_email_sender
from auth import current_user
from config import settings
from database import get_gateway
from gateway import EntryGateway
from models import EmailRequest
from timer import distribute_pending_notifications

logger = logging.getLogger("routes")

router = APIRouter(
    prefix="/api",
    tags=["Email"],
    dependencies=[Depends(current_user)],
)


@router.post("/sendEmail")
async def send_email(email: EmailRequest, sender: EmailSender = Depends(get_email_sender)):
    result = await sender.send(
        email.recipient,
        email.subject,
        email.message,
        email.sender or settings.default_sender,
    )

    if not result.ok:
        return JSONResponse(status_code=502, content={"error": "Failed to send email"})

    return {"success": True, "id": result.id}


@router.post("/jobs/distribute-notifications")
async def trigger_distribution(
    gateway: EntryGateway = Depends(get_gateway),
    sender: EmailSender = Depends(get_email_sender),
):
    tally = await distribute_pending_notifications(
        gateway,
        sender,
        settings.alert_sender,
        batch_size=settings.email_batch_size,
        delay=settings.email_send_delay,
    )
    return {"success": True, **tally}
