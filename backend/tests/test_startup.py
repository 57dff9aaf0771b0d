from fastapi.testclient import TestClient
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker

from app.db import session
from app.main import app


def point_app_at(monkeypatch, url):
    engine = create_engine(url, connect_args={"check_same_thread": False})
    monkeypatch.setattr(session, "engine", engine)
    monkeypatch.setattr(session, "SessionLocal", sessionmaker(autocommit=False, autoflush=False, bind=engine))
    monkeypatch.setattr(app, "dependency_overrides", {})
    return engine


def test_startup_creates_schema_on_fresh_database(tmp_path, monkeypatch):
    engine = point_app_at(monkeypatch, f"sqlite:///{tmp_path / 'fresh.db'}")
    assert inspect(engine).get_table_names() == []

    with TestClient(app) as client:
        assert {"Projects", "Users", "Issues", "IssueUsers", "Comments"} <= set(inspect(engine).get_table_names())

        guest_res = client.post("/api/authentication/guest")
        assert guest_res.status_code == 200

        headers = {"Authorization": f"Bearer {guest_res.json()['access_token']}"}
        assert client.get("/api/currentUser", headers=headers).status_code == 200


def test_startup_keeps_existing_data(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'kept.db'}"
    point_app_at(monkeypatch, url)

    with TestClient(app) as client:
        token = client.post("/api/authentication/guest").json()["access_token"]

    point_app_at(monkeypatch, url)
    with TestClient(app) as client:
        response = client.get("/api/project", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert len(response.json()["issues"]) == 7


def test_check_database_runs_select_one(tmp_path, monkeypatch):
    point_app_at(monkeypatch, f"sqlite:///{tmp_path / 'ping.db'}")

    session.check_database()
