from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlmodel import Session

from controllers import pedido_controller
from controllers.chat_controller import obtener_chats_de_pedido
from database import get_session
from dependencies.auth import get_current_user, get_optional_user
from models.pedido import PedidoEstado
from models.users import User
from services.calificacion_service import listar_calificaciones_de_pedido

router = APIRouter(prefix="/pedidos", tags=["Pedidos"])


class PedidoCreate(BaseModel):
    titulo: str
    descripcion: str
    imagen: Optional[str] = None
    categoria_id: Optional[int] = None


class PedidoUpdate(BaseModel):
    titulo: Optional[str] = None
    descripcion: Optional[str] = None
    imagen: Optional[str] = None
    categoria_id: Optional[int] = None
    # se acepta para poder rechazarlo con un error claro
    estado: Optional[PedidoEstado] = None


class ElegirAyudanteRequest(BaseModel):
    user_id: int


@router.get("")
def listar_pedidos(
    busqueda: str | None = Query(default=None, description="Texto a buscar en título o descripción"),
    estado: PedidoEstado | None = Query(default=None),
    categoria_id: int | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    current_user: User | None = Depends(get_optional_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.listar(
        current_user,
        session,
        busqueda=busqueda,
        estado=estado,
        categoria_id=categoria_id,
        limit=limit,
        offset=offset,
    )


@router.post("", status_code=201)
def crear_pedido(
    data: PedidoCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.crear(data, current_user, session)


@router.get("/{pedido_id}")
def pedido_detalle(
    pedido_id: int,
    current_user: User | None = Depends(get_optional_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.detalle(pedido_id, current_user, session)


@router.patch("/{pedido_id}")
def actualizar_pedido(
    pedido_id: int,
    data: PedidoUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.actualizar(pedido_id, data, current_user, session)


@router.delete("/{pedido_id}", status_code=204)
def eliminar_pedido(
    pedido_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    pedido_controller.eliminar(pedido_id, current_user, session)
    return Response(status_code=204)


@router.post("/{pedido_id}/interes", status_code=201)
def manifestar_interes(
    pedido_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.interes(pedido_id, current_user, session)


@router.get("/{pedido_id}/interesados")
def interesados(
    pedido_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.interesados(pedido_id, current_user, session)


@router.post("/{pedido_id}/ayudante")
def elegir_ayudante(
    pedido_id: int,
    data: ElegirAyudanteRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.ayudante(pedido_id, data.user_id, current_user, session)


@router.post("/{pedido_id}/finalizar")
def finalizar(
    pedido_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.finalizar(pedido_id, current_user, session)


@router.patch("/{pedido_id}/desistir")
def desistir(
    pedido_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.desistir(pedido_id, current_user, session)


@router.patch("/{pedido_id}/cancelar")
def cancelar(
    pedido_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return pedido_controller.cancelar(pedido_id, current_user, session)


@router.get("/{pedido_id}/chats")
def chats_del_pedido(
    pedido_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return obtener_chats_de_pedido(pedido_id, current_user, session)


@router.get("/{pedido_id}/calificaciones")
def calificaciones_del_pedido(
    pedido_id: int,
    session: Session = Depends(get_session),
):
    return listar_calificaciones_de_pedido(session, pedido_id)
