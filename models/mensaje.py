# models/mensaje.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from models.fechas import ahora_utc


class Mensaje(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    chat_id: int = Field(foreign_key="chat.id", index=True, nullable=False)
    remitente_id: int = Field(foreign_key="user.id", nullable=False)

    contenido: str = Field(nullable=False)

    created_at: datetime = Field(default_factory=ahora_utc, sa_type=DateTime(timezone=True), nullable=False)
