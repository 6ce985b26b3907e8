"""Pytest configuration and shared fixtures."""

import pytest
from sqlalchemy.orm import sessionmaker

from backoffice.db.base import Base
from backoffice.db.session import make_engine
import backoffice.db.models  # noqa: F401

from tests.factories import create_template, make_template


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database per test."""
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Session bound to the per-test database."""
    Session = sessionmaker(bind=db_engine, expire_on_commit=False)
    session = Session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def expense_templates():
    """Level 1 for everyone, level 2 only for the sales department."""
    return [
        make_template(topic="expense", level=1, approver_id="U1"),
        make_template(topic="expense", level=2, approver_id="U2", context_filter={"dept": "sales"},
                      authority={"amount_max": 50000}),
    ]


@pytest.fixture
def seeded_expense_templates(db_session):
    """The expense hierarchy stored in the database."""
    return [
        create_template(db_session, topic="expense", level=1, approver_id="U1"),
        create_template(db_session, topic="expense", level=2, approver_id="U2",
                        context_filter={"dept": "sales"}, authority={"amount_max": 50000}),
    ]


@pytest.fixture
def client(db_session):
    """API test client sharing the per-test session."""
    from fastapi.testclient import TestClient

    from backoffice.api.deps import get_db
    from backoffice.api.main import app

    app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def build_chain(db_session, expense_templates):
    """Build a chain and return its steps, initiator first.

    Defaults to the expense hierarchy with a sales context, which yields
    [initiator U0, level 1 U1, level 2 U2].
    """
    from backoffice.core.approval import (
        ChainBuilder, ChainNavigator, HierarchyRegistry, InMemoryTemplateStore,
    )

    def _build(context=None, initiator="U0", topic="expense", templates=None):
        store = InMemoryTemplateStore(templates if templates is not None else expense_templates)
        builder = ChainBuilder(db_session, HierarchyRegistry(store))
        root = builder.build(topic, {"dept": "sales"} if context is None else context, initiator)
        return ChainNavigator().full_chain(root)

    return _build
