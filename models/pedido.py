# models/pedido.py
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import SQLModel, Field

from models.fechas import ahora_utc


class PedidoEstado(str, Enum):
    ABIERTO = "ABIERTO"
    EN_CURSO = "EN_CURSO"
    FINALIZADO = "FINALIZADO"
    CANCELADO = "CANCELADO"


ESTADOS_TERMINALES = {PedidoEstado.FINALIZADO, PedidoEstado.CANCELADO}
ESTADOS_EDITABLES = {PedidoEstado.ABIERTO, PedidoEstado.EN_CURSO}


class Pedido(SQLModel, table=True):
    __table_args__ = (
        # ayudante asignado => EN_CURSO o FINALIZADO
        CheckConstraint(
            "ayudante_id IS NULL OR estado IN ('EN_CURSO', 'FINALIZADO')",
            name="ck_pedido_ayudante_estado",
        ),
        CheckConstraint(
            "ayudante_id IS NULL OR ayudante_id != autor_id",
            name="ck_pedido_ayudante_no_autor",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    titulo: str
    descripcion: str
    imagen: Optional[str] = None

    categoria_id: Optional[int] = Field(default=None, foreign_key="categoria.id")

    autor_id: int = Field(foreign_key="user.id", index=True, nullable=False)
    ayudante_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)

    estado: PedidoEstado = Field(default=PedidoEstado.ABIERTO, nullable=False, index=True)

    creado_en: datetime = Field(default_factory=ahora_utc, sa_type=DateTime(timezone=True), nullable=False)
    actualizado_en: datetime = Field(default_factory=ahora_utc, sa_type=DateTime(timezone=True), nullable=False)
