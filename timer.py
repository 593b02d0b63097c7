# ─────────────────────────────────────────────────────────────────
# timer.py - Scheduled Alert Email Distribution
#
# Unhandled rows of the alert table are emailed to their owner and
# then marked "handled". The work happens in
# distribute_pending_notifications(), which can be triggered two ways:
#   - run_distribution_loop(): background asyncio task started by
#     main.py, firing every EMAIL_DISTRIBUTION_INTERVAL seconds
#   - POST /api/jobs/distribute-notifications for an external cron
#
# The job reads and writes through the Entry Gateway like any other
# caller. Gateway calls are blocking, so they run in a worker thread.
# ─────────────────────────────────────────────────────────────────

import asyncio
import logging

from alerts import EmailSender, build_alert_email
from errors import AgroGoError
from gateway import EntryGateway

logger = logging.getLogger("timer")


async def distribute_pending_notifications(
    gateway: EntryGateway,
    sender: EmailSender,
    from_address: str,
    batch_size: int = 50,
    delay: float = 1.0,
) -> dict[str, int]:
    """
    Email every unhandled alert (up to `batch_size`) and mark it handled.

    HOW IT WORKS:
    1. Query alert rows with status "unhandled"
    2. For each one, look up its user's email address
    3. Send the email; on success set the alert's status to "handled"
    4. Wait `delay` seconds before the next send

    One failing alert never stops the others; it stays unhandled and
    is retried on the next run.
    """
    pending = await asyncio.to_thread(gateway.query, "alert", {"status": "unhandled"}, batch_size)
    logger.info(f"⏱️  Email distribution run: {len(pending)} unhandled alerts")

    sent = 0
    failed = 0

    for index, alert in enumerate(pending):
        if index and delay:
            await asyncio.sleep(delay)

        try:
            users = await asyncio.to_thread(gateway.query, "user", {"id": alert["userId"]}, 1)
            if not users:
                logger.error(f"Alert {alert['id']} belongs to unknown user {alert['userId']}")
                failed += 1
                continue

            subject, body = build_alert_email(alert)
            result = await sender.send(users[0]["email"], subject, body, from_address)
            if not result.ok:
                failed += 1
                continue

            await asyncio.to_thread(
                gateway.update_by_primary_key, "alert", {"id": alert["id"], "status": "handled"}
            )
            sent += 1

        except AgroGoError as e:
            logger.error(f"Alert {alert['id']} could not be processed: {e.message}")
            failed += 1
        except Exception:
            logger.exception(f"Unexpected error while processing alert {alert['id']}")
            failed += 1

    logger.info(f"📬 Email distribution finished: {sent} sent, {failed} failed")
    return {"found": len(pending), "sent": sent, "failed": failed}


async def run_distribution_loop(
    gateway: EntryGateway,
    sender: EmailSender,
    from_address: str,
    interval: float,
    batch_size: int = 50,
    delay: float = 1.0,
):
    """
    Call distribute_pending_notifications() every `interval` seconds
    until the task is cancelled at shutdown.
    """
    try:
        while True:
            try:
                await distribute_pending_notifications(gateway, sender, from_address, batch_size, delay)
            except Exception:
                logger.exception("Email distribution run failed")
            await asyncio.sleep(interval)

    except asyncio.CancelledError:
        logger.info("⏹️  Email distribution loop stopped")
        raise
