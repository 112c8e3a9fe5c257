from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from pymongo.errors import PyMongoError

from ..exceptions import RemoteStoreError


@contextmanager
def store_call(operation: str) -> Iterator[None]:
    """pymongo 예외를 RemoteStoreError 로 감싼다. 재시도는 하지 않는다."""

    try:
        yield
    except PyMongoError as exc:
        raise RemoteStoreError(operation, exc) from exc
