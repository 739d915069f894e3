# models/calificacion.py
from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint, DateTime, UniqueConstraint
from typing import Optional
from datetime import datetime

from models.fechas import ahora_utc


class Calificacion(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("pedido_id", "calificador_id", name="uq_calificacion_pedido_calificador"),
        CheckConstraint("nota >= 1 AND nota <= 5", name="ck_calificacion_nota"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    pedido_id: int = Field(foreign_key="pedido.id", index=True, nullable=False)

    calificador_id: int = Field(foreign_key="user.id", nullable=False)
    calificado_id: int = Field(foreign_key="user.id", index=True, nullable=False)

    nota: int        # 1..5
    comentario: Optional[str] = None

    creado_en: datetime = Field(default_factory=ahora_utc, sa_type=DateTime(timezone=True), nullable=False)
