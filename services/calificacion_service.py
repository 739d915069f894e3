# path: services/calificacion_service.py

from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from errors import Conflict, Forbidden, InvalidOperation, InvalidScore, NotFound
from models.calificacion import Calificacion
from models.notificacion import NotificacionTipo
from models.pedido import Pedido, PedidoEstado
from models.users import User
from services.notificacion_service import notificar
from services.user_service import nombre_para_mostrar, perfil_publico

NOTA_MIN = 1
NOTA_MAX = 5


def _validar_nota(nota: Any) -> int:
    # bool es subclase de int: True no es una nota
    if isinstance(nota, bool) or not isinstance(nota, int):
        raise InvalidScore("La nota debe ser un número entero entre 1 y 5")
    if nota < NOTA_MIN or nota > NOTA_MAX:
        raise InvalidScore("La nota debe ser un valor entre 1 y 5")
    return nota


def _ya_califico(session: Session, pedido_id: int, calificador_id: int) -> bool:
    return session.exec(
        select(Calificacion.id)
        .where(Calificacion.pedido_id == pedido_id)
        .where(Calificacion.calificador_id == calificador_id)
    ).first() is not None


def calificar(
    session: Session,
    pedido_id: int,
    calificador_id: int,
    nota: int,
    comentario: str | None = None,
) -> Calificacion:
    nota = _validar_nota(nota)

    pedido = session.get(Pedido, pedido_id)
    if not pedido:
        raise NotFound("Pedido no encontrado")

    if calificador_id not in (pedido.autor_id, pedido.ayudante_id):
        raise Forbidden("Solo el autor o el ayudante del pedido pueden calificar")

    if pedido.estado != PedidoEstado.FINALIZADO or pedido.ayudante_id is None:
        raise InvalidOperation("Solo se pueden calificar pedidos finalizados que tuvieron un ayudante")

    # la otra parte
    calificado_id = pedido.ayudante_id if calificador_id == pedido.autor_id else pedido.autor_id
    titulo = pedido.titulo

    if _ya_califico(session, pedido_id, calificador_id):
        raise Conflict("Ya calificaste este pedido")

    calificacion = Calificacion(
        pedido_id=pedido_id,
        calificador_id=calificador_id,
        calificado_id=calificado_id,
        nota=nota,
        comentario=comentario.strip() if comentario and comentario.strip() else None,
    )
    session.add(calificacion)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.bind(pedido_id=pedido_id, calificador_id=calificador_id).warning(
            "Calificación duplicada (concurrente)"
        )
        raise Conflict("Ya calificaste este pedido")

    logger.bind(pedido_id=pedido_id, calificador_id=calificador_id, nota=nota).info("Calificación registrada")

    notificar(
        session,
        tipo=NotificacionTipo.CALIFICACION_RECIBIDA,
        user_id=calificado_id,
        mensaje=f'{nombre_para_mostrar(session, calificador_id)} te calificó con {nota} en el pedido "{titulo}".',
        pedido_id=pedido_id,
        remitente_id=calificador_id,
    )

    session.refresh(calificacion)
    return calificacion


def promedio_calificaciones(session: Session, user_id: int) -> dict[str, Any]:
    promedio, total = session.exec(
        select(func.avg(Calificacion.nota), func.count(Calificacion.id))
        .where(Calificacion.calificado_id == user_id)
    ).one()

    return {
        "user_id": user_id,
        "promedio": round(float(promedio), 2) if promedio is not None else None,
        "total": total,
    }


def _calificacion_to_dict(c: Calificacion, calificador: User) -> dict[str, Any]:
    return {
        "id": c.id,
        "pedido_id": c.pedido_id,
        "calificador": perfil_publico(calificador),
        "calificado_id": c.calificado_id,
        "nota": c.nota,
        "comentario": c.comentario,
        "creado_en": c.creado_en.isoformat(),
    }


def listar_calificaciones_recibidas(session: Session, user_id: int) -> list[dict[str, Any]]:
    rows = session.exec(
        select(Calificacion, User)
        .join(User, User.id == Calificacion.calificador_id)
        .where(Calificacion.calificado_id == user_id)
        .order_by(Calificacion.creado_en.desc(), Calificacion.id.desc())
    ).all()
    return [_calificacion_to_dict(c, u) for c, u in rows]


def listar_calificaciones_de_pedido(session: Session, pedido_id: int) -> list[dict[str, Any]]:
    if not session.get(Pedido, pedido_id):
        raise NotFound("Pedido no encontrado")

    rows = session.exec(
        select(Calificacion, User)
        .join(User, User.id == Calificacion.calificador_id)
        .where(Calificacion.pedido_id == pedido_id)
        .order_by(Calificacion.creado_en.asc(), Calificacion.id.asc())
    ).all()
    return [_calificacion_to_dict(c, u) for c, u in rows]
