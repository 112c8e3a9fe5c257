from __future__ import annotations

from common.mongo.types import BaseDocument, MongoDateTime, from_object_id

from ...models.transaction import Transaction, TransactionType


class TransactionDocument(BaseDocument):
    """MongoDB transactions 컬렉션 도큐먼트 모델."""

    customer_username: str
    points: int
    type: str
    description: str
    timestamp: MongoDateTime
    admin_user_id: str | None = None

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionDocument":
        # id 는 Mongo 가 생성한다.
        data = tx.model_dump(mode="python", exclude={"id"})
        data["type"] = tx.type.value
        return cls.model_validate(data)

    def to_domain(self) -> Transaction:
        return Transaction(
            id=from_object_id(self.id),
            customer_username=self.customer_username,
            points=self.points,
            type=TransactionType(self.type),
            description=self.description,
            timestamp=self.timestamp,
            admin_user_id=self.admin_user_id,
        )
