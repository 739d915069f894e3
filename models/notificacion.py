# models/notificacion.py
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from models.fechas import ahora_utc


class NotificacionTipo(str, Enum):
    INTERES_RECIBIDO = "INTERES_RECIBIDO"
    AYUDANTE_ELEGIDO = "AYUDANTE_ELEGIDO"
    PEDIDO_FINALIZADO = "PEDIDO_FINALIZADO"
    AYUDANTE_DESISTIO = "AYUDANTE_DESISTIO"
    PEDIDO_CANCELADO = "PEDIDO_CANCELADO"
    CALIFICACION_RECIBIDA = "CALIFICACION_RECIBIDA"
    NUEVO_MENSAJE = "NUEVO_MENSAJE"


class Notificacion(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True, nullable=False)    # destinatario
    remitente_id: Optional[int] = Field(default=None, foreign_key="user.id")

    pedido_id: Optional[int] = Field(default=None, foreign_key="pedido.id")

    tipo: NotificacionTipo
    mensaje: str
    leida: bool = Field(default=False, nullable=False)

    created_at: datetime = Field(default_factory=ahora_utc, sa_type=DateTime(timezone=True), nullable=False)
