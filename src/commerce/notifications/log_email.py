"""Email adapter that writes messages to the log instead of sending them.

Used where no mail provider is wired up; delivery itself is an external
collaborator of this service.
"""

from uuid import uuid4

import structlog

from commerce.notifications.email_port import EmailPort

logger = structlog.get_logger(__name__)


class LogEmailAdapter(EmailPort):
    def send(self, to: str, subject: str, body: str) -> dict:
        message_id = f"log-{uuid4().hex[:12]}"
        logger.info("Email dispatched", message_id=message_id, to=to, subject=subject, length=len(body))
        return {"message_id": message_id, "status": "sent"}
