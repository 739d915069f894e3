# models/interes.py
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, UniqueConstraint
from typing import Optional
from datetime import datetime

from models.fechas import ahora_utc


class Interes(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("pedido_id", "user_id", name="uq_interes_pedido_user"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    pedido_id: int = Field(foreign_key="pedido.id", index=True, nullable=False)
    user_id: int = Field(foreign_key="user.id", index=True, nullable=False)

    creado_en: datetime = Field(default_factory=ahora_utc, sa_type=DateTime(timezone=True), nullable=False)
