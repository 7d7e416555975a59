from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import make_url

LOCAL_TEST_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "ferdle_postgres"})


@dataclass(frozen=True, slots=True)
class IntegrationDbSafetyResult:
    is_safe: bool
    reason: str
    database_name: str
    host: str


def _unsafe_reason(*, backend: str, database_name: str, host: str) -> str | None:
    if backend != "postgresql":
        return "Integration tests need PostgreSQL (NULLS NOT DISTINCT, SKIP LOCKED)."
    if not database_name:
        return "Database name is empty."
    if "test" not in database_name.lower():
        return "Database name must contain 'test'."
    if host not in LOCAL_TEST_HOSTS:
        return f"Host must be one of: {', '.join(sorted(LOCAL_TEST_HOSTS))}."
    return None


def assess_integration_db_safety(database_url: str) -> IntegrationDbSafetyResult:
    """Decide whether the integration suite may TRUNCATE the database behind the URL."""
    parsed = make_url(database_url)
    database_name = (parsed.database or "").strip()
    host = (parsed.host or "").strip().lower()
    reason = _unsafe_reason(
        backend=parsed.get_backend_name(),
        database_name=database_name,
        host=host,
    )
    return IntegrationDbSafetyResult(
        is_safe=reason is None,
        reason=reason or "ok",
        database_name=database_name,
        host=host,
    )


def assert_safe_integration_db(database_url: str) -> None:
    result = assess_integration_db_safety(database_url)
    if result.is_safe:
        return
    raise RuntimeError(
        "Refusing to run integration tests with destructive TRUNCATE.\n"
        f"Reason: {result.reason}\n"
        f"Resolved DB: name='{result.database_name}' host='{result.host}'\n"
        "Point DATABASE_URL at a local PostgreSQL 15+ database such as 'ferdle_test'."
    )
