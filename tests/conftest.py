"""
Pytest fixtures for the club kernel test suite.

Provides:
- SQLite in-memory database per test (engine, session, SqlStores)
- In-memory stores, and a ``stores`` fixture parametrized over both
- Member / rule / bank transaction factories
- Deterministic clock
- Structured log capture

Environment Variables:
- CLUB_LEDGER_TEST_DATABASE_URL: run the SQL-store tests against another
  database (e.g. PostgreSQL) instead of in-memory SQLite.
"""

import json
import logging
import os
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from club_kernel.db.engine import build_engine, create_tables, drop_tables
from club_kernel.domain.bank_transaction import BankTransaction
from club_kernel.domain.clock import DeterministicClock
from club_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from club_kernel.models import BankImportRule, Member
from club_kernel.stores.sql import SqlStores
from tests.fakes import InMemoryStores

DEFAULT_TEST_URL = "sqlite://"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture club_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, importer):
            importer.import_transaction(bank_tx)
            logs = captured_logs()
            assert any(r["message"] == "bank_transaction_imported" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("club_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("CLUB_LEDGER_TEST_DATABASE_URL", DEFAULT_TEST_URL)


@pytest.fixture
def engine():
    """Fresh schema per test."""
    engine = build_engine(get_database_url())
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    """Session whose outer transaction is rolled back after the test."""
    session = Session(engine, expire_on_commit=False)
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def sql_stores(session):
    return SqlStores(session)


@pytest.fixture
def memory_stores():
    return InMemoryStores()


@pytest.fixture(params=["memory", "sql"])
def stores(request):
    """Runs the test once against each store implementation."""
    if request.param == "memory":
        return InMemoryStores()
    return SqlStores(request.getfixturevalue("session"))


@pytest.fixture
def clock():
    """Fixed at 2024-01-15 12:00 UTC."""
    return DeterministicClock()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_member(stores):
    """Persist a member with sensible defaults."""

    def _make(name="Eris Discordia", **kwargs) -> Member:
        kwargs.setdefault("email", f"{name.split()[0].lower()}@example.org")
        kwargs.setdefault("membership_start", date(2020, 1, 1))
        kwargs.setdefault("fee", Decimal("23.00"))
        return stores.members.add(Member(name=name, **kwargs))

    return _make


@pytest.fixture
def make_rule(stores):
    """Persist an import rule directly, bypassing validation."""

    def _make(member: Member, iban: str, split_amount=None, match_subject=None):
        return stores.rules.add(
            BankImportRule(
                member_id=member.id,
                iban=iban,
                split_amount=Decimal(split_amount) if split_amount is not None else None,
                match_subject=match_subject,
            )
        )

    return _make


@pytest.fixture
def bank_tx():
    """Build a BankTransaction; amounts may be given as strings."""

    def _make(
        amount="23.00",
        *,
        serial_number=1,
        tx_date=date(2023, 5, 10),
        name="Eris Discordia",
        iban="DE12345678901234567890",
        subject="Member fee",
    ) -> BankTransaction:
        return BankTransaction(
            serial_number=serial_number,
            date=tx_date,
            name=name,
            iban=iban,
            amount=Decimal(amount),
            subject=subject,
        )

    return _make
