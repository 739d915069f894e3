# path: services/interes_service.py

from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from errors import Conflict, Forbidden, InvalidOperation, NotFound
from models.interes import Interes
from models.notificacion import NotificacionTipo
from models.pedido import ESTADOS_TERMINALES, Pedido
from models.users import User
from services.notificacion_service import notificar
from services.user_service import nombre_para_mostrar, perfil_publico


def _ya_existe(session: Session, pedido_id: int, user_id: int) -> bool:
    return session.exec(
        select(Interes.id)
        .where(Interes.pedido_id == pedido_id)
        .where(Interes.user_id == user_id)
    ).first() is not None


def manifestar_interes(session: Session, pedido_id: int, user_id: int) -> Interes:
    pedido = session.get(Pedido, pedido_id)
    if not pedido:
        raise NotFound("Pedido no encontrado")

    if pedido.autor_id == user_id:
        raise InvalidOperation("No podés manifestar interés en tu propio pedido")

    # de FINALIZADO y CANCELADO no se sale, haya tenido ayudante o no
    if pedido.estado in ESTADOS_TERMINALES:
        raise InvalidOperation(f"El pedido está {pedido.estado.value} y ya no acepta interesados")

    if not session.get(User, user_id):
        raise NotFound("Usuario no encontrado")

    # solo para dar un mensaje más claro; la garantía es el UNIQUE
    if _ya_existe(session, pedido_id, user_id):
        raise Conflict("Ya manifestaste interés en este pedido")

    titulo = pedido.titulo
    autor_id = pedido.autor_id

    interes = Interes(pedido_id=pedido_id, user_id=user_id)
    session.add(interes)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.bind(pedido_id=pedido_id, user_id=user_id).warning("Interés duplicado (concurrente)")
        raise Conflict("Ya manifestaste interés en este pedido")

    logger.bind(pedido_id=pedido_id, user_id=user_id).info("Interés registrado")

    notificar(
        session,
        tipo=NotificacionTipo.INTERES_RECIBIDO,
        user_id=autor_id,
        mensaje=f'{nombre_para_mostrar(session, user_id)} quiere ayudarte con tu pedido "{titulo}".',
        pedido_id=pedido_id,
        remitente_id=user_id,
    )

    session.refresh(interes)
    return interes


def listar_interesados(session: Session, pedido_id: int, user_id: int) -> list[dict[str, Any]]:
    pedido = session.get(Pedido, pedido_id)
    if not pedido:
        raise NotFound("Pedido no encontrado")

    if pedido.autor_id != user_id:
        raise Forbidden("Solo el autor puede ver la lista de interesados")

    rows = session.exec(
        select(Interes, User)
        .join(User, User.id == Interes.user_id)
        .where(Interes.pedido_id == pedido_id)
        .order_by(Interes.creado_en.asc(), Interes.id.asc())
    ).all()

    return [
        {
            "interes_id": interes.id,
            "user": perfil_publico(user),
            "es_ayudante": pedido.ayudante_id == user.id,
            "creado_en": interes.creado_en.isoformat(),
        }
        for interes, user in rows
    ]
