from __future__ import annotations

from pydantic import BaseModel

from common.types.datetime import UtcDateTime

from ...models.customer import Customer
from ...models.transaction import Transaction


class RegisterRequest(BaseModel):
    username: str
    name: str
    phone: str | None = None
    email: str | None = None


class CustomerResponse(BaseModel):
    username: str
    name: str
    phone: str | None
    email: str | None
    points: int
    created_at: UtcDateTime

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            username=customer.username,
            name=customer.name,
            phone=customer.phone,
            email=customer.email,
            points=customer.points,
            created_at=customer.created_at,
        )


class TransactionResponse(BaseModel):
    id: str | None
    customer_username: str
    points: int
    type: str
    description: str
    timestamp: UtcDateTime
    admin_user_id: str | None = None

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionResponse":
        return cls(
            id=tx.id,
            customer_username=tx.customer_username,
            points=tx.points,
            type=tx.type.value,
            description=tx.description,
            timestamp=tx.timestamp,
            admin_user_id=tx.admin_user_id,
        )


class CustomerDetailResponse(BaseModel):
    """플레이어 로그인 응답: 프로필과 최근 활동."""

    customer: CustomerResponse
    transactions: list[TransactionResponse]


class ListCustomersResponse(BaseModel):
    total: int
    matched: int
    items: list[CustomerResponse]
