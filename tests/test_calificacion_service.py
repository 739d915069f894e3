"""Tests de calificaciones (services/calificacion_service.py)."""

import pytest
from sqlmodel import select

from errors import Conflict, Forbidden, InvalidOperation, InvalidScore, NotFound
from models.calificacion import Calificacion
from models.notificacion import Notificacion, NotificacionTipo
from models.pedido import PedidoEstado
from services import calificacion_service
from services.calificacion_service import (
    calificar,
    listar_calificaciones_de_pedido,
    listar_calificaciones_recibidas,
    promedio_calificaciones,
)
from services.chat_service import abrir_o_obtener_chat
from services.interes_service import manifestar_interes
from services.pedido_service import (
    cancelar_pedido,
    crear_pedido,
    elegir_ayudante,
    finalizar_pedido,
    obtener_pedido,
)


@pytest.fixture
def pedido_finalizado(session, pedido_en_curso):
    pedido_id, autor_id, ayudante_id = pedido_en_curso
    finalizar_pedido(session, pedido_id, autor_id)
    return pedido_id, autor_id, ayudante_id


class TestEscenarioCompleto:
    """Crear, interés, elegir, finalizar y calificarse mutuamente."""

    def test_ciclo_completo(self, session, make_user):
        autor_id = make_user("Ana")
        vecino_id = make_user("Bruno")

        pedido = crear_pedido(session, autor_id=autor_id, titulo="Armar un mueble", descripcion="Una biblioteca")
        assert pedido.estado == PedidoEstado.ABIERTO
        pedido_id = pedido.id

        manifestar_interes(session, pedido_id, vecino_id)
        recibidas = session.exec(
            select(Notificacion)
            .where(Notificacion.user_id == autor_id)
            .where(Notificacion.tipo == NotificacionTipo.INTERES_RECIBIDO)
        ).all()
        assert len(recibidas) == 1

        pedido = elegir_ayudante(session, pedido_id, autor_id, vecino_id)
        assert pedido.estado == PedidoEstado.EN_CURSO
        assert pedido.ayudante_id == vecino_id
        chat = abrir_o_obtener_chat(session, pedido_id, vecino_id, autor_id)
        assert chat.id is not None

        pedido = finalizar_pedido(session, pedido_id, autor_id)
        assert pedido.estado == PedidoEstado.FINALIZADO

        del_autor = calificar(session, pedido_id, autor_id, 5, "great")
        assert del_autor.calificado_id == vecino_id
        assert del_autor.comentario == "great"

        del_ayudante = calificar(session, pedido_id, vecino_id, 4)
        assert del_ayudante.calificado_id == autor_id

        with pytest.raises(Conflict):
            calificar(session, pedido_id, autor_id, 3)

        assert len(session.exec(select(Calificacion)).all()) == 2
        assert obtener_pedido(session, pedido_id)["estado"] == PedidoEstado.FINALIZADO


class TestCalificar:
    """rate."""

    def test_notifica_al_calificado(self, session, pedido_finalizado):
        pedido_id, autor_id, ayudante_id = pedido_finalizado

        calificar(session, pedido_id, ayudante_id, 4)

        notificaciones = session.exec(
            select(Notificacion)
            .where(Notificacion.user_id == autor_id)
            .where(Notificacion.tipo == NotificacionTipo.CALIFICACION_RECIBIDA)
        ).all()
        assert len(notificaciones) == 1
        assert notificaciones[0].remitente_id == ayudante_id

    def test_comentario_en_blanco_se_guarda_como_none(self, session, pedido_finalizado):
        pedido_id, autor_id, _ = pedido_finalizado

        calificacion = calificar(session, pedido_id, autor_id, 5, "   ")

        assert calificacion.comentario is None

    @pytest.mark.parametrize("nota", [0, 6, -1, 2.5, "5", None, True])
    def test_nota_invalida(self, session, pedido_finalizado, nota):
        pedido_id, autor_id, _ = pedido_finalizado

        with pytest.raises(InvalidScore):
            calificar(session, pedido_id, autor_id, nota)

    @pytest.mark.parametrize("nota", [1, 5])
    def test_extremos_validos(self, session, pedido_finalizado, nota):
        pedido_id, autor_id, _ = pedido_finalizado

        assert calificar(session, pedido_id, autor_id, nota).nota == nota

    def test_tercero_no_puede_calificar(self, session, make_user, pedido_finalizado):
        pedido_id, _, _ = pedido_finalizado

        with pytest.raises(Forbidden):
            calificar(session, pedido_id, make_user(), 5)

    def test_pedido_en_curso(self, session, pedido_en_curso):
        pedido_id, autor_id, _ = pedido_en_curso

        with pytest.raises(InvalidOperation):
            calificar(session, pedido_id, autor_id, 5)

    def test_pedido_cancelado(self, session, pedido_en_curso):
        pedido_id, autor_id, _ = pedido_en_curso
        cancelar_pedido(session, pedido_id, autor_id)

        with pytest.raises(InvalidOperation):
            calificar(session, pedido_id, autor_id, 5)

    def test_pedido_inexistente(self, session, make_user):
        with pytest.raises(NotFound):
            calificar(session, 999, make_user(), 5)

    def test_duplicado_detectado_por_la_base(self, session, pedido_finalizado, monkeypatch):
        pedido_id, autor_id, _ = pedido_finalizado
        calificar(session, pedido_id, autor_id, 5)

        monkeypatch.setattr(calificacion_service, "_ya_califico", lambda *args: False)

        with pytest.raises(Conflict):
            calificar(session, pedido_id, autor_id, 1)

        notas = session.exec(select(Calificacion.nota)).all()
        assert notas == [5]


class TestPromedio:
    """Promedio de notas recibidas."""

    def test_sin_calificaciones(self, session, make_user):
        user_id = make_user()

        assert promedio_calificaciones(session, user_id) == {"user_id": user_id, "promedio": None, "total": 0}

    def test_promedio_de_varios_pedidos(self, session, make_user, make_pedido):
        ayudante_id = make_user()
        for nota in (5, 4, 4):
            autor_id = make_user()
            pedido_id = make_pedido(autor_id)
            manifestar_interes(session, pedido_id, ayudante_id)
            elegir_ayudante(session, pedido_id, autor_id, ayudante_id)
            finalizar_pedido(session, pedido_id, autor_id)
            calificar(session, pedido_id, autor_id, nota)

        resultado = promedio_calificaciones(session, ayudante_id)

        assert resultado["promedio"] == 4.33
        assert resultado["total"] == 3

    def test_listados(self, session, pedido_finalizado):
        pedido_id, autor_id, ayudante_id = pedido_finalizado
        calificar(session, pedido_id, autor_id, 5, "Impecable")
        calificar(session, pedido_id, ayudante_id, 3)

        recibidas = listar_calificaciones_recibidas(session, ayudante_id)
        del_pedido = listar_calificaciones_de_pedido(session, pedido_id)

        assert [(c["calificador"]["id"], c["nota"]) for c in recibidas] == [(autor_id, 5)]
        assert [c["nota"] for c in del_pedido] == [5, 3]
