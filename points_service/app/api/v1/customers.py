from __future__ import annotations

from fastapi import APIRouter, status

from ..dependencies import Container
from ..schemas.customers import (
    CustomerDetailResponse,
    CustomerResponse,
    RegisterRequest,
    TransactionResponse,
)


router = APIRouter()

# 플레이어 화면 최근 활동 기본 개수
DEFAULT_HISTORY_LIMIT = 50


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="신규 플레이어 등록",
)
def register_customer(body: RegisterRequest, container: Container) -> CustomerResponse:
    customer = container.registration.register(
        username=body.username,
        name=body.name,
        phone=body.phone,
        email=body.email,
    )
    return CustomerResponse.from_domain(customer)


@router.get(
    "/{username}",
    response_model=CustomerDetailResponse,
    summary="플레이어 로그인 (프로필 + 최근 활동)",
)
def get_customer(
    username: str, container: Container, limit: int = DEFAULT_HISTORY_LIMIT
) -> CustomerDetailResponse:
    username = username.strip()
    customer = container.ledger.get_customer(username)
    transactions = container.ledger.history(username, limit=limit)
    return CustomerDetailResponse(
        customer=CustomerResponse.from_domain(customer),
        transactions=[TransactionResponse.from_domain(tx) for tx in transactions],
    )


@router.get(
    "/{username}/transactions",
    response_model=list[TransactionResponse],
    summary="트랜잭션 이력 (최신순)",
)
def list_transactions(
    username: str, container: Container, limit: int | None = None
) -> list[TransactionResponse]:
    transactions = container.ledger.history(username.strip(), limit=limit)
    return [TransactionResponse.from_domain(tx) for tx in transactions]
