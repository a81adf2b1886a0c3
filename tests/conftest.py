from __future__ import annotations

from typing import Iterator
import uuid

import pytest
from sqlalchemy.pool import StaticPool

from ponto import create_app
from ponto.config import Config
from ponto.extensions import db
from ponto.models import User, UserRole


class TestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }
    APP_TIMEZONE = "America/Sao_Paulo"


def _user(email: str, name: str, role: UserRole) -> User:
    user = User(id=uuid.uuid4(), email=email, name=name, role=role, is_active=True)
    user.set_password("password123")
    return user


@pytest.fixture()
def app() -> Iterator:
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        db.session.add_all(
            [
                _user("admin@example.com", "Patroa Admin", UserRole.ADMIN),
                _user("maria@example.com", "Maria  da Silva", UserRole.EMPLOYEE),
            ]
        )
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client, email: str, password: str = "password123"):
    return client.post(
        "/login",
        data={"email": email, "password": password},
        follow_redirects=False,
    )


@pytest.fixture()
def admin_client(client):
    response = _login(client, "admin@example.com")
    assert response.status_code == 302
    return client


@pytest.fixture()
def employee_client(client):
    response = _login(client, "maria@example.com")
    assert response.status_code == 302
    return client
