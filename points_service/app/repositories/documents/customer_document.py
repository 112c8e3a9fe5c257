from __future__ import annotations

from common.mongo.types import BaseDocument, MongoDateTime

from ...models.customer import Customer


class CustomerDocument(BaseDocument):
    """MongoDB customers 컬렉션 도큐먼트 모델."""

    username: str
    name: str
    phone: str | None = None
    email: str | None = None
    points: int = 0
    created_at: MongoDateTime

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerDocument":
        return cls.model_validate(customer.model_dump())

    def to_domain(self) -> Customer:
        return Customer(
            username=self.username,
            name=self.name,
            phone=self.phone,
            email=self.email,
            # 잘못 저장된 음수 잔액은 0 으로 읽는다.
            points=max(0, self.points),
            created_at=self.created_at,
        )
