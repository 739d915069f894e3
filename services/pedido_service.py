# path: services/pedido_service.py

from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy import delete, func, literal, or_, update
from sqlmodel import Session, select

from errors import Conflict, Forbidden, InvalidOperation, NotFound
from models.calificacion import Calificacion
from models.categoria import Categoria
from models.chat import Chat
from models.fechas import ahora_utc
from models.interes import Interes
from models.mensaje import Mensaje
from models.notificacion import Notificacion, NotificacionTipo
from models.pedido import ESTADOS_EDITABLES, Pedido, PedidoEstado
from models.users import User
from services.chat_service import abrir_o_obtener_chat
from services.notificacion_service import notificar
from services.user_service import nombre_para_mostrar, perfil_publico

CAMPOS_EDITABLES = {"titulo", "descripcion", "imagen", "categoria_id"}


# ---------------------------
# Helpers
# ---------------------------

def _get_pedido(session: Session, pedido_id: int) -> Pedido:
    pedido = session.get(Pedido, pedido_id, populate_existing=True)
    if not pedido:
        raise NotFound("Pedido no encontrado")
    return pedido


def _get_pedido_para_actualizar(session: Session, pedido_id: int) -> Pedido:
    # FOR UPDATE bloquea la fila en Postgres; en SQLite no hace nada
    pedido = session.exec(
        select(Pedido)
        .where(Pedido.id == pedido_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).first()
    if not pedido:
        raise NotFound("Pedido no encontrado")
    return pedido


def _transicionar(session: Session, pedido_id: int, condiciones: list, valores: dict[str, Any]) -> bool:
    """
    UPDATE condicional sobre una sola fila. Devuelve True si la fila cumplía
    las condiciones y se modificó, dentro de la transacción actual (sin commit).
    """
    result = session.connection().execute(
        update(Pedido)
        .where(Pedido.id == pedido_id, *condiciones)
        .values(actualizado_en=ahora_utc(), **valores)
    )
    return result.rowcount == 1


def _validar_texto(valor: Any, campo: str) -> str:
    if not isinstance(valor, str) or not valor.strip():
        raise InvalidOperation(f"El campo '{campo}' es obligatorio")
    return valor.strip()


def _validar_categoria(session: Session, categoria_id: int | None) -> None:
    if categoria_id is not None and not session.get(Categoria, categoria_id):
        raise NotFound("Categoría no encontrada")


def _tiene_interes(session: Session, pedido_id: int, user_id: int) -> bool:
    return session.exec(
        select(Interes.id)
        .where(Interes.pedido_id == pedido_id)
        .where(Interes.user_id == user_id)
    ).first() is not None


def _pedido_to_dict(
    pedido: Pedido,
    *,
    autor: User | None,
    ya_interesado: bool,
    total_interesados: int,
) -> dict[str, Any]:
    return {
        "id": pedido.id,
        "titulo": pedido.titulo,
        "descripcion": pedido.descripcion,
        "imagen": pedido.imagen,
        "categoria_id": pedido.categoria_id,
        "estado": pedido.estado,
        "autor_id": pedido.autor_id,
        "ayudante_id": pedido.ayudante_id,
        "autor": perfil_publico(autor),
        "ya_interesado": bool(ya_interesado),
        "total_interesados": total_interesados or 0,
        "creado_en": pedido.creado_en.isoformat(),
        "actualizado_en": pedido.actualizado_en.isoformat(),
    }


# ---------------------------
# Alta / lectura
# ---------------------------

def crear_pedido(
    session: Session,
    *,
    autor_id: int,
    titulo: str,
    descripcion: str,
    imagen: str | None = None,
    categoria_id: int | None = None,
) -> Pedido:
    titulo = _validar_texto(titulo, "titulo")
    descripcion = _validar_texto(descripcion, "descripcion")

    if not session.get(User, autor_id):
        raise NotFound("Usuario no encontrado")
    _validar_categoria(session, categoria_id)

    pedido = Pedido(
        titulo=titulo,
        descripcion=descripcion,
        imagen=imagen,
        categoria_id=categoria_id,
        autor_id=autor_id,
        estado=PedidoEstado.ABIERTO,
    )
    session.add(pedido)
    session.commit()
    session.refresh(pedido)

    logger.bind(pedido_id=pedido.id, autor_id=autor_id).info("Pedido creado")
    return pedido


def listar_pedidos(
    session: Session,
    *,
    viewer_id: int | None = None,
    busqueda: str | None = None,
    estado: PedidoEstado | None = None,
    categoria_id: int | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[dict[str, Any]]:
    # proyección de lectura: no se guarda en ningún lado
    if viewer_id is not None:
        ya_interesado = (
            select(Interes.id)
            .where(Interes.pedido_id == Pedido.id)
            .where(Interes.user_id == viewer_id)
            .exists()
        )
    else:
        ya_interesado = literal(False)

    total_interesados = (
        select(func.count(Interes.id))
        .where(Interes.pedido_id == Pedido.id)
        .scalar_subquery()
    )

    stmt = (
        select(
            Pedido,
            User,
            ya_interesado.label("ya_interesado"),
            total_interesados.label("total_interesados"),
        )
        .join(User, User.id == Pedido.autor_id)
    )

    if busqueda and busqueda.strip():
        # % y _ se buscan literales
        texto = busqueda.strip()
        stmt = stmt.where(
            or_(
                Pedido.titulo.icontains(texto, autoescape=True),
                Pedido.descripcion.icontains(texto, autoescape=True),
            )
        )

    if estado is not None:
        stmt = stmt.where(Pedido.estado == estado)

    if categoria_id is not None:
        stmt = stmt.where(Pedido.categoria_id == categoria_id)

    stmt = stmt.order_by(Pedido.creado_en.desc(), Pedido.id.desc()).offset(offset).limit(limit)

    rows = session.exec(stmt).all()

    return [
        _pedido_to_dict(pedido, autor=autor, ya_interesado=ya, total_interesados=total)
        for pedido, autor, ya, total in rows
    ]


def obtener_pedido(session: Session, pedido_id: int, viewer_id: int | None = None) -> dict[str, Any]:
    pedido = _get_pedido(session, pedido_id)
    autor = session.get(User, pedido.autor_id)
    ayudante = session.get(User, pedido.ayudante_id) if pedido.ayudante_id else None

    interesados = session.exec(
        select(User, Interes.creado_en)
        .join(Interes, Interes.user_id == User.id)
        .where(Interes.pedido_id == pedido_id)
        .order_by(Interes.creado_en.asc(), Interes.id.asc())
    ).all()

    ya_interesado = viewer_id is not None and any(u.id == viewer_id for u, _ in interesados)

    data = _pedido_to_dict(
        pedido,
        autor=autor,
        ya_interesado=ya_interesado,
        total_interesados=len(interesados),
    )
    data["ayudante"] = perfil_publico(ayudante)
    data["interesados"] = [
        {**perfil_publico(u), "creado_en": creado_en.isoformat()}
        for u, creado_en in interesados
    ]
    return data


def listar_pedidos_de_usuario(session: Session, user_id: int) -> list[Pedido]:
    return session.exec(
        select(Pedido)
        .where(Pedido.autor_id == user_id)
        .order_by(Pedido.creado_en.desc(), Pedido.id.desc())
    ).all()


def listar_pedidos_como_ayudante(session: Session, user_id: int) -> list[Pedido]:
    return session.exec(
        select(Pedido)
        .where(Pedido.ayudante_id == user_id)
        .order_by(Pedido.actualizado_en.desc(), Pedido.id.desc())
    ).all()


# ---------------------------
# Edición / borrado
# ---------------------------

def actualizar_pedido(session: Session, pedido_id: int, autor_id: int, cambios: dict[str, Any]) -> Pedido:
    if "estado" in cambios:
        raise InvalidOperation(
            "El estado del pedido solo cambia con las acciones finalizar, cancelar, elegir ayudante o desistir"
        )

    no_editables = set(cambios) - CAMPOS_EDITABLES
    if no_editables:
        raise InvalidOperation(f"No se pueden modificar los campos: {', '.join(sorted(no_editables))}")

    valores = dict(cambios)
    for campo in ("titulo", "descripcion"):
        if campo in valores:
            valores[campo] = _validar_texto(valores[campo], campo)
    if "categoria_id" in valores:
        _validar_categoria(session, valores["categoria_id"])

    ok = _transicionar(
        session,
        pedido_id,
        [Pedido.autor_id == autor_id, Pedido.estado.in_(list(ESTADOS_EDITABLES))],
        valores,
    )

    if not ok:
        session.rollback()
        pedido = _get_pedido(session, pedido_id)
        if pedido.autor_id != autor_id:
            raise Forbidden("Solo el autor puede editar el pedido")
        raise InvalidOperation(f"Un pedido {pedido.estado.value} no se puede editar")

    session.commit()
    pedido = _get_pedido(session, pedido_id)

    logger.bind(pedido_id=pedido_id, campos=sorted(valores)).info("Pedido actualizado")
    return pedido


def eliminar_pedido(session: Session, pedido_id: int, autor_id: int) -> None:
    pedido = _get_pedido_para_actualizar(session, pedido_id)

    if pedido.autor_id != autor_id:
        session.rollback()
        raise Forbidden("Solo el autor puede eliminar el pedido")

    chats_del_pedido = select(Chat.id).where(Chat.pedido_id == pedido_id)

    conn = session.connection()
    conn.execute(delete(Mensaje).where(Mensaje.chat_id.in_(chats_del_pedido)))
    conn.execute(delete(Chat).where(Chat.pedido_id == pedido_id))
    conn.execute(delete(Notificacion).where(Notificacion.pedido_id == pedido_id))
    conn.execute(delete(Calificacion).where(Calificacion.pedido_id == pedido_id))
    conn.execute(delete(Interes).where(Interes.pedido_id == pedido_id))
    conn.execute(delete(Pedido).where(Pedido.id == pedido_id, Pedido.autor_id == autor_id))

    session.expunge(pedido)
    session.commit()

    logger.bind(pedido_id=pedido_id, autor_id=autor_id).info("Pedido eliminado")


# ---------------------------
# Transiciones
# ---------------------------

def elegir_ayudante(session: Session, pedido_id: int, autor_id: int, candidato_id: int) -> Pedido:
    if candidato_id == autor_id:
        raise InvalidOperation("El autor no puede ser ayudante de su propio pedido")

    candidato_interesado = (
        select(Interes.id)
        .where(Interes.pedido_id == pedido_id)
        .where(Interes.user_id == candidato_id)
        .exists()
    )

    # todo se valida en el mismo UPDATE: dos asignaciones concurrentes no pueden ganar las dos
    ok = _transicionar(
        session,
        pedido_id,
        [
            Pedido.autor_id == autor_id,
            Pedido.estado == PedidoEstado.ABIERTO,
            Pedido.ayudante_id.is_(None),
            candidato_interesado,
        ],
        {"estado": PedidoEstado.EN_CURSO, "ayudante_id": candidato_id},
    )

    if not ok:
        session.rollback()
        pedido = _get_pedido(session, pedido_id)
        if pedido.autor_id != autor_id:
            raise Forbidden("Solo el autor puede elegir al ayudante")
        if pedido.estado == PedidoEstado.EN_CURSO:
            raise Conflict("El pedido ya tiene un ayudante asignado")
        if pedido.estado != PedidoEstado.ABIERTO:
            raise InvalidOperation(f"No se puede elegir ayudante para un pedido {pedido.estado.value}")
        if not _tiene_interes(session, pedido_id, candidato_id):
            raise InvalidOperation("El usuario no manifestó interés en este pedido")
        raise Conflict("El pedido cambió mientras se procesaba la solicitud")

    session.commit()
    pedido = _get_pedido(session, pedido_id)

    logger.bind(pedido_id=pedido_id, ayudante_id=candidato_id).info("Ayudante elegido")

    notificar(
        session,
        tipo=NotificacionTipo.AYUDANTE_ELEGIDO,
        user_id=candidato_id,
        mensaje=f'{nombre_para_mostrar(session, autor_id)} te eligió como ayudante del pedido "{pedido.titulo}".',
        pedido_id=pedido_id,
        remitente_id=autor_id,
    )
    abrir_o_obtener_chat(session, pedido_id, autor_id, candidato_id)

    session.refresh(pedido)
    return pedido


def finalizar_pedido(session: Session, pedido_id: int, autor_id: int) -> Pedido:
    ok = _transicionar(
        session,
        pedido_id,
        [
            Pedido.autor_id == autor_id,
            Pedido.estado == PedidoEstado.EN_CURSO,
            Pedido.ayudante_id.is_not(None),
        ],
        {"estado": PedidoEstado.FINALIZADO},
    )

    if not ok:
        session.rollback()
        pedido = _get_pedido(session, pedido_id)
        if pedido.autor_id != autor_id:
            raise Forbidden("Solo el autor puede finalizar el pedido")
        raise InvalidOperation(
            f"Solo se puede finalizar un pedido EN_CURSO (estado actual: {pedido.estado.value})"
        )

    session.commit()
    pedido = _get_pedido(session, pedido_id)

    logger.bind(pedido_id=pedido_id, autor_id=autor_id).info("Pedido finalizado")

    notificar(
        session,
        tipo=NotificacionTipo.PEDIDO_FINALIZADO,
        user_id=pedido.ayudante_id,
        mensaje=f'El pedido "{pedido.titulo}" que ayudaste fue finalizado. ¡Gracias!',
        pedido_id=pedido_id,
        remitente_id=autor_id,
    )

    session.refresh(pedido)
    return pedido


def desistir_pedido(session: Session, pedido_id: int, ayudante_id: int) -> Pedido:
    # el único paso "hacia atrás": vuelve a ABIERTO, los intereses quedan
    ok = _transicionar(
        session,
        pedido_id,
        [Pedido.estado == PedidoEstado.EN_CURSO, Pedido.ayudante_id == ayudante_id],
        {"estado": PedidoEstado.ABIERTO, "ayudante_id": None},
    )

    if not ok:
        session.rollback()
        pedido = _get_pedido(session, pedido_id)
        if pedido.ayudante_id != ayudante_id:
            raise Forbidden("Solo el ayudante asignado puede desistir del pedido")
        raise InvalidOperation(
            f"Solo se puede desistir de un pedido EN_CURSO (estado actual: {pedido.estado.value})"
        )

    session.commit()
    pedido = _get_pedido(session, pedido_id)

    logger.bind(pedido_id=pedido_id, ayudante_id=ayudante_id).info("Ayudante desistió")

    notificar(
        session,
        tipo=NotificacionTipo.AYUDANTE_DESISTIO,
        user_id=pedido.autor_id,
        mensaje=f'{nombre_para_mostrar(session, ayudante_id)} desistió de ayudar en el pedido "{pedido.titulo}".',
        pedido_id=pedido_id,
        remitente_id=ayudante_id,
    )

    session.refresh(pedido)
    return pedido


def cancelar_pedido(session: Session, pedido_id: int, autor_id: int) -> Pedido:
    pedido = _get_pedido_para_actualizar(session, pedido_id)

    if pedido.autor_id != autor_id:
        session.rollback()
        raise Forbidden("Solo el autor puede cancelar el pedido")

    if pedido.estado not in ESTADOS_EDITABLES:
        session.rollback()
        raise InvalidOperation(f"No se puede cancelar un pedido {pedido.estado.value}")

    estado_previo = pedido.estado
    ayudante_previo = pedido.ayudante_id

    # compare-and-swap sobre lo que se leyó
    ok = _transicionar(
        session,
        pedido_id,
        [
            Pedido.estado == estado_previo,
            Pedido.ayudante_id.is_(None) if ayudante_previo is None else Pedido.ayudante_id == ayudante_previo,
        ],
        {"estado": PedidoEstado.CANCELADO, "ayudante_id": None},
    )

    if not ok:
        session.rollback()
        raise Conflict("El pedido cambió mientras se procesaba la cancelación")

    session.commit()
    pedido = _get_pedido(session, pedido_id)

    logger.bind(pedido_id=pedido_id, autor_id=autor_id).info("Pedido cancelado")

    if ayudante_previo is not None:
        notificar(
            session,
            tipo=NotificacionTipo.PEDIDO_CANCELADO,
            user_id=ayudante_previo,
            mensaje=f'El pedido "{pedido.titulo}" en el que ibas a ayudar fue cancelado.',
            pedido_id=pedido_id,
            remitente_id=autor_id,
        )
        session.refresh(pedido)

    return pedido
