"""Shared fixtures for unit tests."""

import pytest

from common.db import init_tables, reset_engine
from keyword_rules.load_rules import load_rule_config, reset_rule_config, set_rule_config


@pytest.fixture(scope="session")
def prod_rules():
    return load_rule_config("prod")


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, prod_rules):
    """Every test starts without a database and with the prod rules loaded."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    reset_engine()
    set_rule_config(prod_rules)
    yield
    reset_engine()
    reset_rule_config()


@pytest.fixture
def sqlite_db(tmp_path, monkeypatch):
    """Point DATABASE_URL at a fresh SQLite file with all tables created."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'drift.db'}")
    reset_engine()
    init_tables()
    yield
    reset_engine()


@pytest.fixture
def unreachable_db(tmp_path, monkeypatch):
    """Point DATABASE_URL at a SQLite file that cannot be opened."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'missing' / 'drift.db'}")
    reset_engine()
    yield
    reset_engine()
