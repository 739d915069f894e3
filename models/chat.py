# models/chat.py
from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint, DateTime, UniqueConstraint
from typing import Optional
from datetime import datetime

from models.fechas import ahora_utc


class Chat(SQLModel, table=True):
    # un solo chat por (pedido, par de participantes) con el par ordenado
    __table_args__ = (
        UniqueConstraint(
            "pedido_id", "participante1_id", "participante2_id",
            name="uq_chat_pedido_participantes",
        ),
        CheckConstraint("participante1_id < participante2_id", name="ck_chat_par_canonico"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    pedido_id: int = Field(foreign_key="pedido.id", index=True, nullable=False)

    participante1_id: int = Field(foreign_key="user.id", nullable=False)
    participante2_id: int = Field(foreign_key="user.id", nullable=False)

    creado_en: datetime = Field(default_factory=ahora_utc, sa_type=DateTime(timezone=True), nullable=False)
    actualizado_en: datetime = Field(default_factory=ahora_utc, sa_type=DateTime(timezone=True), nullable=False, index=True)
