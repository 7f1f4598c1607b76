"""FastAPI routes for return requests."""

from fastapi import APIRouter

from commerce.api.schemas import (
    ApproveReturnRequest,
    CreateReturnRequest,
    RejectReturnRequest,
    ReturnView,
    UpdateReturnRefundRequest,
)
from commerce.returns.creation import request_return
from commerce.returns.queries import get_return, list_customer_returns, list_returns
from commerce.returns.refund import update_return_refund
from commerce.returns.review import approve_return, reject_return

return_router = APIRouter(prefix="/returns", tags=["returns"])
customer_return_router = APIRouter(prefix="/customers", tags=["returns"])


@return_router.post("", status_code=201, response_model=ReturnView)
def create_return(body: CreateReturnRequest) -> ReturnView:
    request = request_return(
        customer_id=body.customer_id,
        order_id=body.order_id,
        items=[item.model_dump() for item in body.items],
        reason=body.reason,
        description=body.description,
    )
    return ReturnView.from_return(request)


@return_router.get("", response_model=list[ReturnView])
def get_returns(status: str | None = None) -> list[ReturnView]:
    return [ReturnView.from_return(request) for request in list_returns(status)]


@return_router.get("/{return_id}", response_model=ReturnView)
def get_return_detail(return_id: str) -> ReturnView:
    return ReturnView.from_return(get_return(return_id))


@return_router.put("/{return_id}/approve", response_model=ReturnView)
def approve(return_id: str, body: ApproveReturnRequest | None = None) -> ReturnView:
    return ReturnView.from_return(approve_return(return_id, body.admin_notes if body else None))


@return_router.put("/{return_id}/reject", response_model=ReturnView)
def reject(return_id: str, body: RejectReturnRequest | None = None) -> ReturnView:
    return ReturnView.from_return(reject_return(return_id, body.reason if body else None))


@return_router.put("/{return_id}/refund", response_model=ReturnView)
def update_refund(return_id: str, body: UpdateReturnRefundRequest) -> ReturnView:
    request = update_return_refund(
        return_id,
        refund_status=body.refund_status,
        refund_amount=body.refund_amount,
        refund_method=body.refund_method,
        refund_transaction_id=body.refund_transaction_id,
    )
    return ReturnView.from_return(request)


@customer_return_router.get("/{customer_id}/returns", response_model=list[ReturnView])
def get_customer_returns(customer_id: str) -> list[ReturnView]:
    return [ReturnView.from_return(request) for request in list_customer_returns(customer_id)]
