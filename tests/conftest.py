from __future__ import annotations

import os

import pytest
from sqlalchemy.orm import sessionmaker

import holiday_planner.db as app_db
import holiday_planner.main as app_main
from holiday_planner import models  # noqa: F401

os.environ.setdefault("SAVE_DEBOUNCE_SECONDS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest.fixture(autouse=True)
def reset_database(tmp_path, monkeypatch):
    db_file = tmp_path / "test_planner.db"
    db_url = f"sqlite:///{db_file}"
    monkeypatch.setenv("DATABASE_URL", db_url)
    monkeypatch.setenv("SAVE_DEBOUNCE_SECONDS", "0")

    # Rebind per test so every test gets its own writable SQLite file.
    app_db.engine.dispose()
    app_db.DATABASE_URL = app_db.get_database_url()
    app_db.engine = app_db.build_engine(app_db.DATABASE_URL)
    app_db.SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=app_db.engine,
        expire_on_commit=False,
    )
    app_main._SERVICE = None

    app_db.Base.metadata.drop_all(bind=app_db.engine)
    app_db.Base.metadata.create_all(bind=app_db.engine)
    yield
    app_main._SERVICE = None
    app_db.Base.metadata.drop_all(bind=app_db.engine)
    app_db.engine.dispose()
