import os
from dataclasses import dataclass
from typing import Mapping, Optional

from idlemmo.errors import ConfigurationError


ACCOUNT_BACKENDS = ("supabase", "sql", "memory")


@dataclass(frozen=True)
class Settings:
    base_url: str
    account_backend: str
    supabase_url: str
    supabase_key: str
    supabase_table: str
    database_url: str
    http_timeout_s: float
    http_retries: int
    http_backoff_s: float
    http_circuit_failure_threshold: int = 3
    http_circuit_reset_s: float = 120.0


def _float(env: Mapping[str, str], name: str, default: str) -> float:
    raw = env.get(name, default)
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def _int(env: Mapping[str, str], name: str, default: str) -> int:
    raw = env.get(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    backend = env.get("IDLEMMO_ACCOUNT_BACKEND", "supabase").strip().lower()
    if backend not in ACCOUNT_BACKENDS:
        allowed = ", ".join(ACCOUNT_BACKENDS)
        raise ConfigurationError(f"IDLEMMO_ACCOUNT_BACKEND must be one of: {allowed}")

    supabase_url = env.get("SUPABASE_URL", "").strip()
    supabase_key = env.get("SUPABASE_KEY", "").strip()
    database_url = env.get("IDLEMMO_DATABASE_URL", "").strip()

    if backend == "supabase":
        if not supabase_url:
            raise ConfigurationError("SUPABASE_URL env var not set")
        if not supabase_key:
            raise ConfigurationError("SUPABASE_KEY env var not set")
    if backend == "sql" and not database_url:
        raise ConfigurationError("IDLEMMO_DATABASE_URL env var not set")

    return Settings(
        base_url=env.get("IDLEMMO_BASE_URL", "https://web.idle-mmo.com/").strip(),
        account_backend=backend,
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        supabase_table=env.get("SUPABASE_TABLE", "users").strip() or "users",
        database_url=database_url,
        http_timeout_s=_float(env, "IDLEMMO_HTTP_TIMEOUT_S", "15"),
        http_retries=max(0, _int(env, "IDLEMMO_HTTP_RETRIES", "2")),
        http_backoff_s=max(0.0, _float(env, "IDLEMMO_HTTP_BACKOFF_S", "0.5")),
        http_circuit_failure_threshold=max(0, _int(env, "IDLEMMO_HTTP_CIRCUIT_FAILURE_THRESHOLD", "3")),
        http_circuit_reset_s=max(0.0, _float(env, "IDLEMMO_HTTP_CIRCUIT_RESET_SECONDS", "120")),
    )
