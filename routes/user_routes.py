# path: routes/user_routes.py
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr
from sqlmodel import Session

from database import get_session
from services.calificacion_service import listar_calificaciones_recibidas, promedio_calificaciones
from services.user_service import crear_usuario, obtener_usuario_publico

router = APIRouter(prefix="/users", tags=["Users"])


class UserOut(BaseModel):
    id: int
    nombre: str
    email: str
    avatar: Optional[str] = None
    activo: bool


class CreateUserRequest(BaseModel):
    nombre: str
    email: EmailStr
    password: str
    avatar: Optional[str] = None


@router.post("", response_model=UserOut, status_code=201)
def registrar_usuario(
    data: CreateUserRequest,
    session: Session = Depends(get_session),
):
    user = crear_usuario(
        session,
        nombre=data.nombre,
        email=data.email,
        password=data.password,
        avatar=data.avatar,
    )

    return UserOut(
        id=user.id,
        nombre=user.nombre,
        email=user.email,
        avatar=user.avatar,
        activo=bool(user.activo),
    )


@router.get("/{user_id}")
def perfil(
    user_id: int,
    session: Session = Depends(get_session),
):
    data = obtener_usuario_publico(session, user_id)
    calificaciones = promedio_calificaciones(session, user_id)
    return {
        **data,
        "promedio_calificaciones": calificaciones["promedio"],
        "total_calificaciones": calificaciones["total"],
    }


@router.get("/{user_id}/calificaciones")
def calificaciones_recibidas(
    user_id: int,
    session: Session = Depends(get_session),
):
    obtener_usuario_publico(session, user_id)
    return listar_calificaciones_recibidas(session, user_id)
