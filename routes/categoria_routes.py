from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from database import get_session
from dependencies.auth import get_current_user
from services.categoria_service import crear_categoria, listar_categorias

router = APIRouter(prefix="/categorias", tags=["Categorias"])


class CategoriaRequest(BaseModel):
    nombre: str


@router.get("")
def listar(session: Session = Depends(get_session)):
    return listar_categorias(session)


@router.post("", status_code=201)
def crear(
    data: CategoriaRequest,
    current_user=Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return crear_categoria(session, data.nombre)
