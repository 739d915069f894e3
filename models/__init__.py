# models/__init__.py

from .users import User
from .categoria import Categoria

from .pedido import Pedido, PedidoEstado
from .interes import Interes
from .calificacion import Calificacion

from .chat import Chat
from .mensaje import Mensaje

from .notificacion import Notificacion, NotificacionTipo
