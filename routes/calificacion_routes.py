from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from database import get_session
from dependencies.auth import get_current_user
from models.users import User
from services.calificacion_service import calificar

router = APIRouter(prefix="/calificaciones", tags=["Calificaciones"])


class CalificacionRequest(BaseModel):
    pedido_id: int
    # Any: la validación de rango/tipo la hace el service (InvalidScore)
    nota: Any
    comentario: Optional[str] = None


@router.post("", status_code=201)
def crear_calificacion(
    data: CalificacionRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return calificar(session, data.pedido_id, current_user.id, data.nota, data.comentario)
