# models/fechas.py
from datetime import datetime, timezone


def ahora_utc() -> datetime:
    """Instante actual con zona horaria (UTC); todas las columnas de fecha lo guardan así."""
    return datetime.now(timezone.utc)
