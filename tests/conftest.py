import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from main import create_app
from tests.factories import FakeXTrafik, make_settings


@pytest.fixture
def backend():
    return FakeXTrafik()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def client(backend, settings):
    app = create_app(settings, transport=backend.transport)
    with TestClient(app) as test_client:
        yield test_client
