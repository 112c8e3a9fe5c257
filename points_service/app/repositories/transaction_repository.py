from __future__ import annotations

from pymongo.database import Database

from common.mongo.types import from_object_id

from ..models.transaction import Transaction
from .documents.transaction_document import TransactionDocument
from .errors import store_call
from .interfaces import TransactionRepositoryInterface


class TransactionRepository(TransactionRepositoryInterface):
    """transactions 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["transactions"]

    def create(self, tx: Transaction) -> Transaction:
        payload = TransactionDocument.from_domain(tx).to_mongo_record()
        with store_call("transactions.insert_one"):
            result = self._col.insert_one(payload)
        return tx.model_copy(update={"id": from_object_id(result.inserted_id)})

    def list_by_customer(
        self, username: str, limit: int | None = None
    ) -> list[Transaction]:
        with store_call("transactions.find"):
            cursor = self._col.find(
                {"customer_username": username},
                sort=[("timestamp", -1), ("_id", -1)],
                limit=limit or 0,
            )
            docs = list(cursor)
        return [TransactionDocument.model_validate(doc).to_domain() for doc in docs]
