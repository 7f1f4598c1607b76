"""Admin review of return requests: approve (restocks) or reject."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.inventory.ledger import get_ledger
from commerce.returns.return_request import ReturnRequest
from commerce.utils.locks import return_locks

logger = structlog.get_logger(__name__)


@commerce.command(part_of="ReturnRequest")
class ApproveReturn:
    return_id = Identifier(required=True)
    admin_notes = Text()


@commerce.command(part_of="ReturnRequest")
class RejectReturn:
    return_id = Identifier(required=True)
    reason = String(max_length=500)


@commerce.command_handler(part_of=ReturnRequest)
class ReturnReviewHandler:
    @handle(ApproveReturn)
    def approve(self, command):
        repo = current_domain.repository_for(ReturnRequest)
        request = repo.get(command.return_id)
        request.approve(command.admin_notes)
        repo.add(request)

    @handle(RejectReturn)
    def reject(self, command):
        repo = current_domain.repository_for(ReturnRequest)
        request = repo.get(command.return_id)
        request.reject(command.reason)
        repo.add(request)


def approve_return(return_id: str, admin_notes: str | None = None) -> ReturnRequest:
    """Approve a pending return and put its items back on sale."""
    repo = current_domain.repository_for(ReturnRequest)
    with return_locks.hold(return_id):
        current_domain.process(ApproveReturn(return_id=return_id, admin_notes=admin_notes), asynchronous=False)
        request = repo.get(return_id)
        get_ledger().release_all(request.stock_lines())

    logger.info("Return approved", return_number=request.return_number, lines=len(request.items or []))
    return request


def reject_return(return_id: str, reason: str | None = None) -> ReturnRequest:
    with return_locks.hold(return_id):
        current_domain.process(RejectReturn(return_id=return_id, reason=reason), asynchronous=False)
    request = current_domain.repository_for(ReturnRequest).get(return_id)
    logger.info("Return rejected", return_number=request.return_number, reason=request.rejected_reason)
    return request
