from __future__ import annotations

from common.mongo.types import BaseDocument, MongoDateTime

from ...models.active_session import ActiveSession


class ActiveSessionDocument(BaseDocument):
    """MongoDB active_sessions 컬렉션 도큐먼트 모델."""

    username: str
    session_id: str
    tab_id: str
    start_time: MongoDateTime
    last_heartbeat: MongoDateTime

    @classmethod
    def from_domain(cls, session: ActiveSession) -> "ActiveSessionDocument":
        return cls.model_validate(session.model_dump())

    def to_domain(self) -> ActiveSession:
        return ActiveSession(
            username=self.username,
            session_id=self.session_id,
            tab_id=self.tab_id,
            start_time=self.start_time,
            last_heartbeat=self.last_heartbeat,
        )
