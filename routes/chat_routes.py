from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from controllers.chat_controller import (
    abrir_chat,
    leer_mensajes,
    mandar_mensaje,
    obtener_chat_detalle,
    obtener_chats,
)
from database import get_session
from dependencies.auth import get_current_user
from models.users import User

router = APIRouter(prefix="/chats", tags=["Chat"])


class AbrirChatRequest(BaseModel):
    pedido_id: int
    destinatario_id: int


class MensajeRequest(BaseModel):
    contenido: Optional[str] = None


@router.post("", status_code=201)
def crear_u_obtener_chat(
    data: AbrirChatRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return abrir_chat(data.pedido_id, data.destinatario_id, current_user, session)


@router.get("")
def listar_chats(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return obtener_chats(current_user, session)


@router.get("/{chat_id}")
def chat_detalle(
    chat_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return obtener_chat_detalle(chat_id, current_user, session)


@router.get("/{chat_id}/mensajes")
def mensajes(
    chat_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return leer_mensajes(chat_id, current_user, session)


@router.post("/{chat_id}/mensajes", status_code=201)
def enviar(
    chat_id: int,
    data: MensajeRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return mandar_mensaje(chat_id, data.contenido, current_user, session)
