# models/users.py
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from models.fechas import ahora_utc


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    nombre: str
    email: str = Field(unique=True, index=True)
    password_hash: str
    avatar: Optional[str] = None
    activo: bool = True

    created_at: datetime = Field(default_factory=ahora_utc, sa_type=DateTime(timezone=True), nullable=False)
