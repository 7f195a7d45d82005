import sys
import os

import pytest

# Ensure repo root on sys.path for imports like `services...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
	sys.path.insert(0, ROOT)

from config import Config  # noqa: E402
from utils.demo_data import demo_store  # noqa: E402


@pytest.fixture
def demo_mode(monkeypatch):
	monkeypatch.setattr(Config, "DEMO_MODE", True)
	demo_store.reset()
	yield demo_store
	demo_store.reset()


@pytest.fixture
def client(demo_mode):
	from app import create_app

	app = create_app()
	app.config["TESTING"] = True
	return app.test_client()
