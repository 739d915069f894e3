import os

from fastapi import FastAPI, Depends, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel
from sqlmodel import SQLModel, Session, select

from database import engine, get_session
from dependencies.auth import get_current_user
from errors import DomainError, handle_domain_error
from monitoring import configure_logger, log_requests
from services.calificacion_service import promedio_calificaciones
from services.security import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token, verify_password

# registra TODOS los modelos en SQLModel.metadata
import models

# Routers
from routes.calificacion_routes import router as calificacion_router
from routes.categoria_routes import router as categoria_router
from routes.chat_routes import router as chat_router
from routes.notificacion_routes import router as notificacion_router
from routes.pedido_routes import router as pedido_router
from routes.user_routes import router as user_router

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]

configure_logger()

app = FastAPI(title="Vecinos que ayudan")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)
app.add_exception_handler(DomainError, handle_domain_error)


# -------------------------
# STARTUP
# -------------------------
@app.on_event("startup")
def on_startup():
    SQLModel.metadata.create_all(engine)
    logger.info("Tablas verificadas, backend listo")


# -------------------------
# ROOT
# -------------------------
@app.get("/")
def home():
    return {"mensaje": "Backend listo"}


# -------------------------
# ROUTERS
# -------------------------
app.include_router(pedido_router)
app.include_router(chat_router)
app.include_router(calificacion_router)
app.include_router(notificacion_router)
app.include_router(categoria_router)
app.include_router(user_router)

# =========================
# AUTH
# =========================

class LoginRequest(BaseModel):
    email: str
    password: str


@app.post("/login")
def login(
    data: LoginRequest,
    response: Response,
    session: Session = Depends(get_session)
):
    user = session.exec(
        select(models.User).where(models.User.email == data.email)
    ).first()

    if not user or not user.activo or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Credenciales inválidas")

    token = create_access_token({
        "sub": str(user.id),           # jose exige string
        "email": user.email,
        "nombre": user.nombre,
    })

    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=True,
        samesite="none",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )

    return {"ok": True, "access_token": token}


@app.get("/me")
def me(
    current_user=Depends(get_current_user),
    session: Session = Depends(get_session),
):
    calificaciones = promedio_calificaciones(session, current_user.id)
    return {
        "id": current_user.id,
        "email": current_user.email,
        "nombre": current_user.nombre,
        "avatar": current_user.avatar,
        "promedio_calificaciones": calificaciones["promedio"],
    }


@app.post("/logout")
def logout(response: Response):
    response.delete_cookie("access_token", path="/")
    return {"ok": True}
