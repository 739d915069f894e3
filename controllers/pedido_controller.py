from services.pedido_service import (
    actualizar_pedido,
    cancelar_pedido,
    crear_pedido,
    desistir_pedido,
    elegir_ayudante,
    eliminar_pedido,
    finalizar_pedido,
    listar_pedidos,
    obtener_pedido,
)
from services.interes_service import listar_interesados, manifestar_interes


def listar(current_user, session, *, busqueda, estado, categoria_id, limit, offset):
    return listar_pedidos(
        session,
        viewer_id=current_user.id if current_user else None,
        busqueda=busqueda,
        estado=estado,
        categoria_id=categoria_id,
        limit=limit,
        offset=offset,
    )

def detalle(pedido_id: int, current_user, session):
    return obtener_pedido(
        session,
        pedido_id,
        viewer_id=current_user.id if current_user else None,
    )

def crear(data, current_user, session):
    return crear_pedido(
        session,
        autor_id=current_user.id,
        titulo=data.titulo,
        descripcion=data.descripcion,
        imagen=data.imagen,
        categoria_id=data.categoria_id,
    )

def actualizar(pedido_id: int, data, current_user, session):
    # solo los campos que vinieron en el body
    cambios = data.model_dump(exclude_unset=True)
    return actualizar_pedido(session, pedido_id, current_user.id, cambios)

def eliminar(pedido_id: int, current_user, session):
    eliminar_pedido(session, pedido_id, current_user.id)

def interes(pedido_id: int, current_user, session):
    return manifestar_interes(session, pedido_id, current_user.id)

def interesados(pedido_id: int, current_user, session):
    return listar_interesados(session, pedido_id, current_user.id)

def ayudante(pedido_id: int, candidato_id: int, current_user, session):
    return elegir_ayudante(session, pedido_id, current_user.id, candidato_id)

def finalizar(pedido_id: int, current_user, session):
    return finalizar_pedido(session, pedido_id, current_user.id)

def desistir(pedido_id: int, current_user, session):
    return desistir_pedido(session, pedido_id, current_user.id)

def cancelar(pedido_id: int, current_user, session):
    return cancelar_pedido(session, pedido_id, current_user.id)
