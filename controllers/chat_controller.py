from services.chat_service import (
    abrir_o_obtener_chat,
    enviar_mensaje,
    listar_chats_de_pedido,
    listar_chats_de_usuario,
    listar_mensajes,
    obtener_chat,
)

def abrir_chat(pedido_id: int, destinatario_id: int, current_user, session):
    return abrir_o_obtener_chat(session, pedido_id, current_user.id, destinatario_id)

def obtener_chats(current_user, session):
    return listar_chats_de_usuario(session, current_user.id)

def obtener_chats_de_pedido(pedido_id: int, current_user, session):
    return listar_chats_de_pedido(session, pedido_id, current_user.id)

def obtener_chat_detalle(chat_id: int, current_user, session):
    return obtener_chat(session, chat_id, current_user.id)

def leer_mensajes(chat_id: int, current_user, session):
    return listar_mensajes(session, chat_id, current_user.id)

def mandar_mensaje(chat_id: int, contenido: str | None, current_user, session):
    return enviar_mensaje(session, chat_id, current_user.id, contenido)
