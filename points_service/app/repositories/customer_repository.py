from __future__ import annotations

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ..models.customer import Customer
from .documents.customer_document import CustomerDocument
from .errors import store_call
from .interfaces import CustomerRepositoryInterface


class CustomerRepository(CustomerRepositoryInterface):
    """customers 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["customers"]

    @staticmethod
    def _from_document(doc: dict) -> Customer:
        return CustomerDocument.model_validate(doc).to_domain()

    def find_by_username(self, username: str) -> Customer | None:
        with store_call("customers.find_one"):
            doc = self._col.find_one({"username": username})
        if not doc:
            return None
        return self._from_document(doc)

    def insert(self, customer: Customer) -> bool:
        payload = CustomerDocument.from_domain(customer).to_mongo_record()
        with store_call("customers.insert_one"):
            try:
                self._col.insert_one(payload)
            except DuplicateKeyError:
                # uniq_username 인덱스 위반은 저장소 장애가 아니다.
                return False
        return True

    def compare_and_set_points(
        self, username: str, expected: int, new_points: int
    ) -> bool:
        # points 가 읽은 값 그대로일 때만 갱신한다 (다른 탭/관리자 쓰기와의 경합 방지)
        with store_call("customers.update_one"):
            result = self._col.update_one(
                {"username": username, "points": expected},
                {"$set": {"points": new_points}},
            )
        return result.modified_count == 1 or (
            result.matched_count == 1 and expected == new_points
        )

    def list_all(self) -> list[Customer]:
        with store_call("customers.find"):
            docs = list(self._col.find({}, sort=[("created_at", 1)]))
        return [self._from_document(doc) for doc in docs]
