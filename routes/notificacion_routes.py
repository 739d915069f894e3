from fastapi import APIRouter, Depends
from sqlmodel import Session

from controllers.notificacion_controller import (
    cantidad_no_leidas,
    leer_notificacion,
    leer_todas,
    obtener_notificaciones,
)
from database import get_session
from dependencies.auth import get_current_user
from models.users import User

router = APIRouter(prefix="/notificaciones", tags=["Notificaciones"])


@router.get("")
def listar(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return obtener_notificaciones(current_user, session)


@router.get("/no-leidas/cantidad")
def no_leidas(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return cantidad_no_leidas(current_user, session)


@router.patch("/leidas")
def marcar_todas(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return leer_todas(current_user, session)


@router.patch("/{notificacion_id}/leida")
def marcar_leida(
    notificacion_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return leer_notificacion(notificacion_id, current_user, session)
