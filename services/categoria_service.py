# path: services/categoria_service.py
from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from errors import Conflict, InvalidOperation
from models.categoria import Categoria


def listar_categorias(session: Session) -> list[Categoria]:
    return session.exec(select(Categoria).order_by(Categoria.nombre.asc())).all()


def crear_categoria(session: Session, nombre: str) -> Categoria:
    nombre = (nombre or "").strip()
    if not nombre:
        raise InvalidOperation("El nombre de la categoría es obligatorio")

    categoria = Categoria(nombre=nombre)
    session.add(categoria)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict("La categoría ya existe")

    session.refresh(categoria)
    return categoria
