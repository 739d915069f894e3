from services.notificacion_service import (
    contar_no_leidas,
    listar_notificaciones,
    marcar_como_leida,
    marcar_todas_como_leidas,
)

def obtener_notificaciones(current_user, session):
    return listar_notificaciones(session, current_user.id)

def cantidad_no_leidas(current_user, session):
    return {"cantidad": contar_no_leidas(session, current_user.id)}

def leer_notificacion(notificacion_id: int, current_user, session):
    return marcar_como_leida(session, notificacion_id, current_user.id)

def leer_todas(current_user, session):
    return {"actualizadas": marcar_todas_como_leidas(session, current_user.id)}
