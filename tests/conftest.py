"""
Test configuration and shared fixtures for the export test suite.
Provides database setup, a fake job queue and a throwaway storage disk.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from reportable.app import create_app
from reportable.core.config import ReportableConfig
from reportable.core.database import Base, DWBase
from reportable.exports.dispatcher import ExportDispatcher
from reportable.exports.executor import ExportExecutor
from reportable.exports.router import get_export_service
from reportable.exports.service import ReportExportService
from reportable.exports.storage import LocalStorage
from sample_reports import ORDERS, PRODUCTS, USERS, Order, Product, User


# ===== DATABASE SETUP =====

@pytest.fixture(scope="session")
def config_engine():
    """Create in-memory SQLite engine for config database"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Import all config models to register them
    from reportable.exports.models import ReportExport  # noqa: F401
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="session")
def dw_engine():
    """Create in-memory SQLite engine for data warehouse database"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    DWBase.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="function")
def config_db_session(config_engine):
    """Create a database session for config database"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=config_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        # Clean up all data after each test
        Base.metadata.drop_all(bind=config_engine)
        Base.metadata.create_all(bind=config_engine)


@pytest.fixture(scope="function")
def dw_db_session(dw_engine):
    """Create a database session for data warehouse database"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=dw_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        # Clean up all data after each test
        DWBase.metadata.drop_all(bind=dw_engine)
        DWBase.metadata.create_all(bind=dw_engine)


# ===== SAMPLE DATA FIXTURES =====

@pytest.fixture
def seeded_dw(dw_db_session):
    """Five users (three active), five products (three electronics) and three orders"""
    dw_db_session.add_all([User(**row) for row in USERS])
    dw_db_session.add_all([Product(**row) for row in PRODUCTS])
    dw_db_session.commit()
    dw_db_session.add_all([Order(**row) for row in ORDERS])
    dw_db_session.commit()
    return dw_db_session


# ===== EXPORT PIPELINE FIXTURES =====

class FakeDispatcher(ExportDispatcher):
    """Records dispatched export ids instead of queueing them"""

    def __init__(self):
        self.dispatched = []

    def dispatch(self, export_id):
        self.dispatched.append(export_id)


@pytest.fixture
def test_config(tmp_path):
    """Config with storage disks and temp files under the test's tmp_path"""
    temp_dir = tmp_path / "tmp"
    temp_dir.mkdir()
    return ReportableConfig(
        storage_root=str(tmp_path / "storage"),
        temp_dir=str(temp_dir),
        disks={"s3": str(tmp_path / "s3")},
    )


@pytest.fixture
def fake_dispatcher():
    return FakeDispatcher()


@pytest.fixture
def storage(test_config):
    return LocalStorage(config=test_config)


@pytest.fixture
def export_service(config_db_session, dw_db_session, fake_dispatcher, test_config):
    return ReportExportService(config_db_session, dw_db_session, dispatcher=fake_dispatcher, config=test_config)


@pytest.fixture
def executor(export_service, storage):
    return ExportExecutor(export_service, storage)


@pytest.fixture
def client(export_service):
    """Create FastAPI test client wired to the test export service"""
    app = create_app(init_db=False)
    app.dependency_overrides[get_export_service] = lambda: export_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
