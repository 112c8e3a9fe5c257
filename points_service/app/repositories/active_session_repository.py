from __future__ import annotations

from datetime import datetime

from pymongo import ReturnDocument
from pymongo.database import Database

from ..models.active_session import ActiveSession
from .documents.active_session_document import ActiveSessionDocument
from .errors import store_call
from .interfaces import ActiveSessionRepositoryInterface


class ActiveSessionRepository(ActiveSessionRepositoryInterface):
    """active_sessions 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["active_sessions"]

    @staticmethod
    def _from_document(doc: dict) -> ActiveSession:
        return ActiveSessionDocument.model_validate(doc).to_domain()

    def upsert(self, session: ActiveSession) -> ActiveSession:
        payload = ActiveSessionDocument.from_domain(session).to_mongo_record()
        with store_call("active_sessions.replace_one"):
            self._col.replace_one({"username": session.username}, payload, upsert=True)
        return session

    def touch(
        self, username: str, session_id: str | None, now: datetime
    ) -> ActiveSession | None:
        query: dict[str, object] = {"username": username}
        if session_id is not None:
            query["session_id"] = session_id
        with store_call("active_sessions.find_one_and_update"):
            doc = self._col.find_one_and_update(
                query,
                {"$set": {"last_heartbeat": now}},
                return_document=ReturnDocument.AFTER,
            )
        if not doc:
            return None
        return self._from_document(doc)

    def delete(self, username: str, session_id: str | None = None) -> bool:
        query: dict[str, object] = {"username": username}
        if session_id is not None:
            query["session_id"] = session_id
        with store_call("active_sessions.delete_one"):
            result = self._col.delete_one(query)
        return result.deleted_count > 0

    def find(self, username: str) -> ActiveSession | None:
        with store_call("active_sessions.find_one"):
            doc = self._col.find_one({"username": username})
        if not doc:
            return None
        return self._from_document(doc)

    def list_all(self) -> dict[str, ActiveSession]:
        with store_call("active_sessions.find"):
            docs = list(self._col.find({}))
        sessions = [self._from_document(doc) for doc in docs]
        return {session.username: session for session in sessions}
