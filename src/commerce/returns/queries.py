"""Return request reads."""

from protean.utils.globals import current_domain

from commerce.returns.return_request import ReturnRequest


def get_return(return_id: str) -> ReturnRequest:
    return current_domain.repository_for(ReturnRequest).get(return_id)


def list_returns(status: str | None = None) -> list[ReturnRequest]:
    return current_domain.repository_for(ReturnRequest).with_status(status)


def list_customer_returns(customer_id: str) -> list[ReturnRequest]:
    return current_domain.repository_for(ReturnRequest).for_customer(customer_id)
