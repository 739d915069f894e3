"""Tests HTTP de punta a punta con TestClient."""

import pytest

from errors import ErrorKind
from models.users import User
from services.security import create_access_token


@pytest.fixture
def vecinos(make_user, auth_headers):
    """Tres usuarios con sus headers: autor, ayudante y un tercero."""
    ids = [make_user("Ana"), make_user("Bruno"), make_user("Carla")]
    return [(user_id, auth_headers(user_id)) for user_id in ids]


def _crear_pedido(client, headers, **extra):
    body = {"titulo": "Pasear al perro", "descripcion": "Dos vueltas", **extra}
    resp = client.post("/pedidos", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestFlujoCompleto:

    def test_de_abierto_a_calificado(self, client, vecinos):
        (autor_id, autor), (ayudante_id, ayudante), _ = vecinos

        pedido = _crear_pedido(client, autor)
        assert pedido["estado"] == "ABIERTO"
        pid = pedido["id"]

        resp = client.post(f"/pedidos/{pid}/interes", headers=ayudante)
        assert resp.status_code == 201

        resp = client.get("/notificaciones/no-leidas/cantidad", headers=autor)
        assert resp.json() == {"cantidad": 1}

        resp = client.get("/pedidos", headers=ayudante)
        assert resp.json()[0]["ya_interesado"] is True

        resp = client.get(f"/pedidos/{pid}/interesados", headers=autor)
        assert [i["user"]["id"] for i in resp.json()] == [ayudante_id]

        resp = client.post(f"/pedidos/{pid}/ayudante", json={"user_id": ayudante_id}, headers=autor)
        assert resp.status_code == 200
        assert resp.json()["estado"] == "EN_CURSO"
        assert resp.json()["ayudante_id"] == ayudante_id

        chats = client.get(f"/pedidos/{pid}/chats", headers=ayudante).json()
        assert len(chats) == 1
        chat_id = chats[0]["id"]

        resp = client.post(f"/chats/{chat_id}/mensajes", json={"contenido": "Paso a las 5"}, headers=ayudante)
        assert resp.status_code == 201
        mensajes = client.get(f"/chats/{chat_id}/mensajes", headers=autor).json()
        assert [m["contenido"] for m in mensajes] == ["Paso a las 5"]

        resp = client.post(f"/pedidos/{pid}/finalizar", headers=autor)
        assert resp.json()["estado"] == "FINALIZADO"

        resp = client.post("/calificaciones", json={"pedido_id": pid, "nota": 5, "comentario": "great"}, headers=autor)
        assert resp.status_code == 201
        assert resp.json()["calificado_id"] == ayudante_id

        resp = client.post("/calificaciones", json={"pedido_id": pid, "nota": 4}, headers=ayudante)
        assert resp.status_code == 201

        resp = client.post("/calificaciones", json={"pedido_id": pid, "nota": 3}, headers=autor)
        assert resp.status_code == 409
        assert resp.json()["error"] == ErrorKind.CONFLICT.value

        perfil = client.get(f"/users/{ayudante_id}").json()
        assert perfil["promedio_calificaciones"] == 5.0
        assert perfil["total_calificaciones"] == 1

        resp = client.get(f"/pedidos/{pid}/calificaciones")
        assert [c["nota"] for c in resp.json()] == [5, 4]

    def test_desistir_y_cancelar(self, client, vecinos):
        (autor_id, autor), (ayudante_id, ayudante), _ = vecinos
        pid = _crear_pedido(client, autor)["id"]
        client.post(f"/pedidos/{pid}/interes", headers=ayudante)
        client.post(f"/pedidos/{pid}/ayudante", json={"user_id": ayudante_id}, headers=autor)

        resp = client.patch(f"/pedidos/{pid}/desistir", headers=ayudante)
        assert resp.json()["estado"] == "ABIERTO"
        assert resp.json()["ayudante_id"] is None

        tipos = [n["tipo"] for n in client.get("/notificaciones", headers=autor).json()]
        assert tipos[0] == "AYUDANTE_DESISTIO"

        resp = client.patch(f"/pedidos/{pid}/cancelar", headers=autor)
        assert resp.json()["estado"] == "CANCELADO"

    def test_editar_y_eliminar(self, client, vecinos):
        (_, autor), _, _ = vecinos
        pid = _crear_pedido(client, autor)["id"]

        resp = client.patch(f"/pedidos/{pid}", json={"titulo": "Pasear a Toby"}, headers=autor)
        assert resp.status_code == 200
        assert resp.json()["titulo"] == "Pasear a Toby"

        resp = client.patch(f"/pedidos/{pid}", json={"estado": "FINALIZADO"}, headers=autor)
        assert resp.status_code == 400

        resp = client.delete(f"/pedidos/{pid}", headers=autor)
        assert resp.status_code == 204
        assert client.get(f"/pedidos/{pid}").status_code == 404


class TestErroresHTTP:
    """Cada tipo de error sale con su status."""

    def test_not_found(self, client, vecinos):
        (_, autor), _, _ = vecinos

        resp = client.post("/pedidos/999/finalizar", headers=autor)

        assert resp.status_code == 404
        assert resp.json() == {"detail": "Pedido no encontrado", "error": "NOT_FOUND"}

    def test_forbidden(self, client, vecinos):
        (_, autor), _, (_, tercero) = vecinos
        pid = _crear_pedido(client, autor)["id"]

        resp = client.patch(f"/pedidos/{pid}/cancelar", headers=tercero)

        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"

    def test_invalid_operation(self, client, vecinos):
        (_, autor), _, _ = vecinos
        pid = _crear_pedido(client, autor)["id"]

        resp = client.post(f"/pedidos/{pid}/finalizar", headers=autor)

        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_OPERATION"

    def test_conflict(self, client, vecinos):
        (_, autor), (_, ayudante), _ = vecinos
        pid = _crear_pedido(client, autor)["id"]
        client.post(f"/pedidos/{pid}/interes", headers=ayudante)

        resp = client.post(f"/pedidos/{pid}/interes", headers=ayudante)

        assert resp.status_code == 409

    @pytest.mark.parametrize("nota", [0, 6, "cinco"])
    def test_invalid_score(self, client, vecinos, nota):
        (_, autor), (ayudante_id, ayudante), _ = vecinos
        pid = _crear_pedido(client, autor)["id"]
        client.post(f"/pedidos/{pid}/interes", headers=ayudante)
        client.post(f"/pedidos/{pid}/ayudante", json={"user_id": ayudante_id}, headers=autor)
        client.post(f"/pedidos/{pid}/finalizar", headers=autor)

        resp = client.post("/calificaciones", json={"pedido_id": pid, "nota": nota}, headers=autor)

        assert resp.status_code == 422
        assert resp.json()["error"] == "INVALID_SCORE"

    def test_sin_token(self, client):
        resp = client.post("/pedidos", json={"titulo": "x", "descripcion": "y"})

        assert resp.status_code == 401

    def test_token_invalido(self, client):
        resp = client.get("/notificaciones", headers={"Authorization": "Bearer no-es-un-jwt"})

        assert resp.status_code == 401


class TestUsuarios:

    def test_registro_login_y_me(self, client):
        resp = client.post(
            "/users",
            json={"nombre": "Dora", "email": "dora@vecinos.com.ar", "password": "clave-segura"},
        )
        assert resp.status_code == 201
        user_id = resp.json()["id"]

        resp = client.post("/users", json={"nombre": "Dora", "email": "dora@vecinos.com.ar", "password": "otra"})
        assert resp.status_code == 409

        resp = client.post("/login", json={"email": "dora@vecinos.com.ar", "password": "incorrecta"})
        assert resp.status_code == 401

        resp = client.post("/login", json={"email": "dora@vecinos.com.ar", "password": "clave-segura"})
        assert resp.status_code == 200
        token = resp.json()["access_token"]

        resp = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.json()["id"] == user_id
        assert resp.json()["promedio_calificaciones"] is None

    def test_categorias(self, client, vecinos):
        (_, autor), _, _ = vecinos

        resp = client.post("/categorias", json={"nombre": "Mascotas"}, headers=autor)
        assert resp.status_code == 201
        categoria_id = resp.json()["id"]
        assert client.post("/categorias", json={"nombre": "Mascotas"}, headers=autor).status_code == 409

        _crear_pedido(client, autor, categoria_id=categoria_id)
        _crear_pedido(client, autor)

        assert [c["nombre"] for c in client.get("/categorias").json()] == ["Mascotas"]
        filtrados = client.get(f"/pedidos?categoria_id={categoria_id}").json()
        assert len(filtrados) == 1


class TestToken:

    def test_token_vencido(self, client, make_user):
        token = create_access_token({"sub": str(make_user())}, expires_minutes=-5)

        resp = client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert resp.status_code == 401

    def test_usuario_inactivo(self, client, session, make_user, auth_headers):
        user_id = make_user()
        user = session.get(User, user_id)
        user.activo = False
        session.add(user)
        session.commit()

        assert client.get("/me", headers=auth_headers(user_id)).status_code == 401

    def test_pedidos_sin_token_son_publicos(self, client, make_user, auth_headers):
        _crear_pedido(client, auth_headers(make_user()))

        resp = client.get("/pedidos")

        assert resp.status_code == 200
        assert resp.json()[0]["ya_interesado"] is False
