from typing import Optional

from idlemmo.application.services.game_session import GameSession
from idlemmo.config import Settings, load_settings
from idlemmo.domain.repositories import AccountRepository
from idlemmo.infrastructure.db.connection import create_session_factory
from idlemmo.infrastructure.db.sql_account_repo import SqlAccountRepository
from idlemmo.infrastructure.game_transport import GameTransport
from idlemmo.infrastructure.inmemory.inmemory_account_repo import InMemoryAccountRepository
from idlemmo.infrastructure.resilient_http import CircuitBreaker
from idlemmo.infrastructure.supabase_account_repo import SupabaseAccountRepository


def _circuit_breaker(settings: Settings) -> CircuitBreaker:
    return CircuitBreaker(
        failure_threshold=settings.http_circuit_failure_threshold,
        reset_seconds=settings.http_circuit_reset_s,
    )


def create_account_repository(settings: Settings) -> AccountRepository:
    if settings.account_backend == "memory":
        return InMemoryAccountRepository()
    if settings.account_backend == "sql":
        return SqlAccountRepository(create_session_factory(settings.database_url))
    return SupabaseAccountRepository(
        settings.supabase_url,
        settings.supabase_key,
        table=settings.supabase_table,
        timeout=settings.http_timeout_s,
        retries=settings.http_retries,
        backoff_seconds=settings.http_backoff_s,
        breaker=_circuit_breaker(settings),
    )


def create_game_session(settings: Optional[Settings] = None) -> GameSession:
    settings = settings or load_settings()
    transport = GameTransport(
        settings.base_url,
        timeout=settings.http_timeout_s,
        retries=settings.http_retries,
        backoff_seconds=settings.http_backoff_s,
        breaker=_circuit_breaker(settings),
    )
    return GameSession(transport, create_account_repository(settings))
