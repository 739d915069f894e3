# path: services/chat_service.py

from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased
from sqlmodel import Session, select

from errors import Forbidden, InvalidOperation, NotFound
from models.chat import Chat
from models.fechas import ahora_utc
from models.interes import Interes
from models.mensaje import Mensaje
from models.notificacion import NotificacionTipo
from models.pedido import Pedido
from models.users import User
from services.notificacion_service import notificar
from services.user_service import nombre_para_mostrar, perfil_publico


def par_canonico(user_a: int, user_b: int) -> tuple[int, int]:
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def _puede_conversar(session: Session, pedido: Pedido, user_id: int) -> bool:
    """El "otro lado" del autor: ayudante asignado o alguien que manifestó interés."""
    if pedido.ayudante_id == user_id:
        return True
    return session.exec(
        select(Interes.id)
        .where(Interes.pedido_id == pedido.id)
        .where(Interes.user_id == user_id)
    ).first() is not None


def _buscar_chat(session: Session, pedido_id: int, p1: int, p2: int) -> Chat | None:
    return session.exec(
        select(Chat)
        .where(Chat.pedido_id == pedido_id)
        .where(Chat.participante1_id == p1)
        .where(Chat.participante2_id == p2)
    ).first()


def _chat_de_participante(session: Session, chat_id: int, user_id: int) -> Chat:
    chat = session.get(Chat, chat_id)
    if not chat:
        raise NotFound("Chat no encontrado")
    if user_id not in (chat.participante1_id, chat.participante2_id):
        raise Forbidden("No participás de este chat")
    return chat


def abrir_o_obtener_chat(session: Session, pedido_id: int, user_a: int, user_b: int) -> Chat:
    if user_a == user_b:
        raise InvalidOperation("Un chat necesita dos participantes distintos")

    pedido = session.get(Pedido, pedido_id)
    if not pedido:
        raise NotFound("Pedido no encontrado")

    autorizado = (
        (pedido.autor_id == user_a and _puede_conversar(session, pedido, user_b))
        or (pedido.autor_id == user_b and _puede_conversar(session, pedido, user_a))
    )
    if not autorizado:
        raise Forbidden("El chat solo puede iniciarse entre el autor y un interesado o el ayudante del pedido")

    p1, p2 = par_canonico(user_a, user_b)

    chat = _buscar_chat(session, pedido_id, p1, p2)
    if chat:
        return chat

    chat = Chat(pedido_id=pedido_id, participante1_id=p1, participante2_id=p2)
    session.add(chat)
    try:
        session.commit()
    except IntegrityError:
        # el otro participante lo creó primero
        session.rollback()
        chat = _buscar_chat(session, pedido_id, p1, p2)
        if not chat:
            raise
        return chat

    session.refresh(chat)
    logger.bind(chat_id=chat.id, pedido_id=pedido_id).info("Chat creado")
    return chat


def enviar_mensaje(session: Session, chat_id: int, remitente_id: int, contenido: str | None) -> Mensaje:
    chat = _chat_de_participante(session, chat_id, remitente_id)

    if not contenido or not contenido.strip():
        raise InvalidOperation("El contenido del mensaje es obligatorio")

    destinatario_id = chat.participante2_id if chat.participante1_id == remitente_id else chat.participante1_id
    pedido_id = chat.pedido_id
    ahora = ahora_utc()

    mensaje = Mensaje(chat_id=chat_id, remitente_id=remitente_id, contenido=contenido, created_at=ahora)
    session.add(mensaje)

    # para ordenar la lista de chats por actividad
    chat.actualizado_en = ahora
    session.add(chat)

    session.commit()
    session.refresh(mensaje)

    pedido = session.get(Pedido, pedido_id)
    notificar(
        session,
        tipo=NotificacionTipo.NUEVO_MENSAJE,
        user_id=destinatario_id,
        mensaje=(
            f"{nombre_para_mostrar(session, remitente_id)} te envió un mensaje "
            f'en el chat del pedido "{pedido.titulo if pedido else ""}".'
        ),
        pedido_id=pedido_id,
        remitente_id=remitente_id,
    )

    session.refresh(mensaje)
    return mensaje


def _chat_to_dict(chat: Chat, p1: User, p2: User, total_mensajes: int) -> dict[str, Any]:
    return {
        "id": chat.id,
        "pedido_id": chat.pedido_id,
        "participantes": [perfil_publico(p1), perfil_publico(p2)],
        "total_mensajes": total_mensajes or 0,
        "creado_en": chat.creado_en.isoformat(),
        "actualizado_en": chat.actualizado_en.isoformat(),
    }


def _listar_chats(session: Session, user_id: int, pedido_id: int | None = None) -> list[dict[str, Any]]:
    P1 = aliased(User)
    P2 = aliased(User)

    total_mensajes = (
        select(func.count(Mensaje.id))
        .where(Mensaje.chat_id == Chat.id)
        .scalar_subquery()
    )

    stmt = (
        select(Chat, P1, P2, total_mensajes.label("total_mensajes"))
        .join(P1, P1.id == Chat.participante1_id)
        .join(P2, P2.id == Chat.participante2_id)
        .where(or_(Chat.participante1_id == user_id, Chat.participante2_id == user_id))
    )
    if pedido_id is not None:
        stmt = stmt.where(Chat.pedido_id == pedido_id)

    rows = session.exec(stmt.order_by(Chat.actualizado_en.desc(), Chat.id.desc())).all()

    return [_chat_to_dict(chat, p1, p2, total) for chat, p1, p2, total in rows]


def listar_chats_de_pedido(session: Session, pedido_id: int, user_id: int) -> list[dict[str, Any]]:
    if not session.get(Pedido, pedido_id):
        raise NotFound("Pedido no encontrado")
    return _listar_chats(session, user_id, pedido_id=pedido_id)


def listar_chats_de_usuario(session: Session, user_id: int) -> list[dict[str, Any]]:
    return _listar_chats(session, user_id)


def obtener_chat(session: Session, chat_id: int, user_id: int) -> dict[str, Any]:
    chat = _chat_de_participante(session, chat_id, user_id)
    pedido = session.get(Pedido, chat.pedido_id)

    return {
        "id": chat.id,
        "participantes": [
            perfil_publico(session.get(User, chat.participante1_id)),
            perfil_publico(session.get(User, chat.participante2_id)),
        ],
        "pedido": {
            "id": pedido.id,
            "titulo": pedido.titulo,
            "autor_id": pedido.autor_id,
            "estado": pedido.estado,
        },
        "creado_en": chat.creado_en.isoformat(),
        "actualizado_en": chat.actualizado_en.isoformat(),
    }


def listar_mensajes(session: Session, chat_id: int, user_id: int) -> list[dict[str, Any]]:
    _chat_de_participante(session, chat_id, user_id)

    rows = session.exec(
        select(Mensaje, User)
        .join(User, User.id == Mensaje.remitente_id)
        .where(Mensaje.chat_id == chat_id)
        .order_by(Mensaje.created_at.asc(), Mensaje.id.asc())
    ).all()

    return [
        {
            "id": m.id,
            "chat_id": m.chat_id,
            "contenido": m.contenido,
            "remitente": perfil_publico(remitente),
            "created_at": m.created_at.isoformat(),
        }
        for m, remitente in rows
    ]
