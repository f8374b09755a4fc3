import pytest

from csvimport import config
from csvimport.main import create_app
from csvimport.db import SessionLocal, engine
from csvimport.db.models import Base


@pytest.fixture(autouse=True)
def no_batch_pause(monkeypatch):
    monkeypatch.setattr(config, "BATCH_PAUSE", 0)


@pytest.fixture
def tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture
def app(tables):
    app = create_app()
    app.config.update({"TESTING": True})
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(tables):
    with SessionLocal() as session:
        yield session
