# path: services/notificacion_service.py

from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from errors import NotFound
from models.notificacion import Notificacion, NotificacionTipo
from models.pedido import Pedido


def _guardar(session: Session, notificacion: Notificacion) -> Notificacion:
    session.add(notificacion)
    session.commit()
    session.refresh(notificacion)
    return notificacion


def notificar(
    session: Session,
    *,
    tipo: NotificacionTipo,
    user_id: int,
    mensaje: str,
    pedido_id: int | None = None,
    remitente_id: int | None = None,
) -> Notificacion | None:
    """
    Guarda una notificación para `user_id`.

    Se llama SIEMPRE después del commit de la transición principal. Si falla
    el guardado, se hace rollback solo de la notificación y se loguea: la
    transición ya quedó confirmada y no se deshace.
    """
    notificacion = Notificacion(
        user_id=user_id,
        tipo=tipo,
        mensaje=mensaje,
        pedido_id=pedido_id,
        remitente_id=remitente_id,
    )

    try:
        return _guardar(session, notificacion)
    except SQLAlchemyError:
        session.rollback()
        logger.bind(tipo=tipo.value, user_id=user_id, pedido_id=pedido_id).exception(
            "No se pudo guardar la notificación"
        )
        return None


def _to_dict(n: Notificacion, pedido_titulo: str | None) -> dict[str, Any]:
    return {
        "id": n.id,
        "tipo": n.tipo,
        "mensaje": n.mensaje,
        "leida": n.leida,
        "pedido_id": n.pedido_id,
        "pedido_titulo": pedido_titulo,
        "remitente_id": n.remitente_id,
        "created_at": n.created_at.isoformat(),
    }


def listar_notificaciones(session: Session, user_id: int) -> list[dict[str, Any]]:
    rows = session.exec(
        select(Notificacion, Pedido.titulo)
        .outerjoin(Pedido, Pedido.id == Notificacion.pedido_id)
        .where(Notificacion.user_id == user_id)
        .order_by(Notificacion.created_at.desc(), Notificacion.id.desc())
    ).all()

    return [_to_dict(n, titulo) for n, titulo in rows]


def marcar_como_leida(session: Session, notificacion_id: int, user_id: int) -> Notificacion:
    notificacion = session.get(Notificacion, notificacion_id)

    # no se distingue "no existe" de "no es tuya"
    if not notificacion or notificacion.user_id != user_id:
        raise NotFound("Notificación no encontrada")

    notificacion.leida = True
    session.add(notificacion)
    session.commit()
    session.refresh(notificacion)
    return notificacion


def marcar_todas_como_leidas(session: Session, user_id: int) -> int:
    result = session.connection().execute(
        update(Notificacion)
        .where(Notificacion.user_id == user_id, Notificacion.leida.is_(False))
        .values(leida=True)
    )
    session.commit()
    return result.rowcount


def contar_no_leidas(session: Session, user_id: int) -> int:
    return session.exec(
        select(func.count(Notificacion.id))
        .where(Notificacion.user_id == user_id)
        .where(Notificacion.leida.is_(False))
    ).one()
