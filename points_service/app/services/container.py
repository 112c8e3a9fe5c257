from __future__ import annotations

from dataclasses import dataclass

from ..config import AppConfig
from ..models.customer import DashboardStats
from ..repositories.factory import Repositories, build_repositories
from .accrual_controller import SessionAccrualController, SessionHub
from .admin_auth import AdminAuthenticator
from .error_log_service import ErrorLogService
from .ledger_service import PointsLedger
from .registration_service import RegistrationService
from .scheduler import Clock, Scheduler, SystemClock, ThreadScheduler
from .session_registry import SessionRegistry


@dataclass(slots=True)
class ServiceContainer:
    """기동 시 한 번 조립되는 서비스 묶음. 라우터는 app.state 에서 꺼내 쓴다."""

    config: AppConfig
    repositories: Repositories
    ledger: PointsLedger
    registration: RegistrationService
    registry: SessionRegistry
    error_logs: ErrorLogService
    admin_auth: AdminAuthenticator
    sessions: SessionHub

    def dashboard_stats(self) -> DashboardStats:
        customers = self.ledger.list_customers()
        return DashboardStats(
            total_customers=len(customers),
            total_points=sum(c.points for c in customers),
            active_sessions=self.registry.count_active(),
        )


def build_container(
    config: AppConfig,
    repositories: Repositories | None = None,
    clock: Clock | None = None,
    scheduler: Scheduler | None = None,
) -> ServiceContainer:
    repositories = repositories or build_repositories(config.store)
    clock = clock or SystemClock()
    scheduler = scheduler or ThreadScheduler()

    ledger = PointsLedger(
        repositories.customers,
        repositories.transactions,
        clock=clock,
        max_attempts=config.points.max_adjust_attempts,
    )
    registry = SessionRegistry(
        repositories.sessions,
        config.session.liveness_threshold_seconds,
        clock=clock,
    )
    error_logs = ErrorLogService(repositories.error_logs, clock=clock)

    def make_controller(username: str) -> SessionAccrualController:
        return SessionAccrualController(
            username=username,
            ledger=ledger,
            registry=registry,
            scheduler=scheduler,
            clock=clock,
            points_config=config.points,
            session_config=config.session,
            error_logs=error_logs,
        )

    return ServiceContainer(
        config=config,
        repositories=repositories,
        ledger=ledger,
        registration=RegistrationService(repositories.customers, clock=clock),
        registry=registry,
        error_logs=error_logs,
        admin_auth=AdminAuthenticator(config.admin.password),
        sessions=SessionHub(make_controller, registry),
    )
