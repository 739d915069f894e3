"""
Fixtures compartidas: base SQLite en memoria por test, usuarios/pedidos de
ejemplo y un TestClient con la sesión inyectada.
"""

import itertools
import os

# antes de importar database.py (exige DATABASE_URL)
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "secret-de-tests")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, select

import models  # noqa: F401  registra las tablas
from database import crear_engine, get_session
from models.pedido import Pedido, PedidoEstado
from models.users import User
from services.security import create_access_token
from services.interes_service import manifestar_interes
from services.pedido_service import crear_pedido, elegir_ayudante


@pytest.fixture
def engine():
    engine = crear_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """Base en archivo: varias conexiones reales, para probar concurrencia con threads."""
    engine = crear_engine(f"sqlite:///{tmp_path / 'vecinos.db'}", connect_args={"timeout": 30})
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def _user_factory(session):
    counter = itertools.count(1)

    def _make(nombre=None) -> int:
        n = next(counter)
        user = User(
            nombre=nombre or f"Vecino {n}",
            email=f"vecino{n}@example.com",
            password_hash="no-se-usa",
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user.id

    return _make


@pytest.fixture
def make_user(session):
    """Crea un usuario y devuelve su id."""
    return _user_factory(session)


@pytest.fixture
def make_pedido(session):
    def _make(autor_id: int, titulo: str = "Pasear al perro", descripcion: str = "Dos vueltas a la manzana", **kwargs) -> int:
        pedido = crear_pedido(session, autor_id=autor_id, titulo=titulo, descripcion=descripcion, **kwargs)
        return pedido.id

    return _make


@pytest.fixture
def pedido_en_curso(session, make_user, make_pedido):
    """(pedido_id, autor_id, ayudante_id) con el ayudante ya elegido."""
    autor_id = make_user("Ana")
    ayudante_id = make_user("Bruno")
    pedido_id = make_pedido(autor_id)
    manifestar_interes(session, pedido_id, ayudante_id)
    elegir_ayudante(session, pedido_id, autor_id, ayudante_id)
    return pedido_id, autor_id, ayudante_id


@pytest.fixture
def assert_invariantes(session):
    def _check():
        session.expire_all()
        for pedido in session.exec(select(Pedido)).all():
            if pedido.ayudante_id is not None:
                assert pedido.estado in {PedidoEstado.EN_CURSO, PedidoEstado.FINALIZADO}
            assert pedido.autor_id != pedido.ayudante_id

    return _check


@pytest.fixture
def client(engine):
    from app import app

    def _get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user_id: int) -> dict:
        token = create_access_token({"sub": str(user_id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers
