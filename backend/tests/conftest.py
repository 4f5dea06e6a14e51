import os

# Must be set before config.py / database.py are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.users import User, UserRole
from models.material import Material
from models.supplier import Supplier
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

PASSWORD = "secret123"

# One in-memory database shared by the test session and the app sessions.
# Plain engine: every session here shares a single connection, so the
# BEGIN IMMEDIATE listeners of database.create_db_engine would nest.
# test_concurrency.py builds file-backed engines with them instead.
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Fresh schema per test. Fixtures commit what they create so that the
    sessions opened by the app during a request can see it.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make(role: UserRole, email: str, name: str = None, school: str = None) -> User:
        user = User(
            name=name or email.split("@")[0],
            email=email,
            password_hash=get_password_hash(PASSWORD),
            role=role.value,
            school=school,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def requester(make_user):
    return make_user(UserRole.solicitante, "ana@escola.com.br", name="Ana", school="EM Centro")


@pytest.fixture
def other_requester(make_user):
    return make_user(UserRole.solicitante, "bruno@escola.com.br", name="Bruno", school="EM Norte")


@pytest.fixture
def dispatcher(make_user):
    return make_user(UserRole.despachante, "carla@escola.com.br", name="Carla")


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.administrador, "admin@escola.com.br", name="Administrador")


@pytest.fixture
def make_material(db_session):
    def _make(name: str, min_stock: int = 0, category: str = "Papelaria", unit: str = "unidade") -> Material:
        material = Material(name=name, category=category, unit=unit, min_stock=min_stock, current_stock=0)
        db_session.add(material)
        db_session.commit()
        return material
    return _make


@pytest.fixture
def supplier(db_session):
    s = Supplier(name="Papelaria Central", email="vendas@papelariacentral.com.br")
    db_session.add(s)
    db_session.commit()
    return s


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers
