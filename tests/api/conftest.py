import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch

from tracker_server.api_service.core.database import get_db
from tracker_server.api_service.main import app
from tracker_server.processing_service.logic.settings import settings as engine_settings


@pytest.fixture
def mock_db_session():
    session = MagicMock()

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    yield session
    app.dependency_overrides.clear()


@pytest.fixture
def client(mock_db_session):
    # No context manager: the lifespan would try to reach the database.
    with patch.object(engine_settings, "LOCAL_TZ", "UTC"):
        yield TestClient(app)
