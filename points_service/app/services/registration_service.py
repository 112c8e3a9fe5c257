from __future__ import annotations

import logging
import re

from ..exceptions import ValidationError
from ..models.customer import Customer
from ..repositories.interfaces import CustomerRepositoryInterface
from .scheduler import Clock, SystemClock


logger = logging.getLogger(__name__)


USERNAME_MIN_LENGTH = 3
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


def validate_username(username: str) -> str:
    username = username.strip()
    if len(username) < USERNAME_MIN_LENGTH:
        raise ValidationError(
            f"Username must be at least {USERNAME_MIN_LENGTH} characters long"
        )
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(
            "Username can only contain letters, numbers, and underscores"
        )
    return username


class RegistrationService:
    """신규 플레이어 등록."""

    def __init__(
        self,
        customer_repo: CustomerRepositoryInterface,
        clock: Clock | None = None,
    ) -> None:
        self._customer_repo = customer_repo
        self._clock = clock or SystemClock()

    def register(
        self,
        username: str,
        name: str,
        phone: str | None = None,
        email: str | None = None,
    ) -> Customer:
        if not username.strip() or not name.strip():
            raise ValidationError("Username and full name are required")
        username = validate_username(username)

        if self._customer_repo.find_by_username(username) is not None:
            raise ValidationError(
                "Username already taken. Please choose a different one."
            )

        customer = Customer(
            username=username,
            name=name.strip(),
            phone=(phone or "").strip() or None,
            email=(email or "").strip() or None,
            points=0,
            created_at=self._clock.now(),
        )
        # 조회와 삽입 사이에 다른 등록이 끼어든 경우
        if not self._customer_repo.insert(customer):
            raise ValidationError(
                "Username already taken. Please choose a different one."
            )

        logger.info("customer registered", extra={"username": username})
        return customer
