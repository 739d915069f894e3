from .logger import configure_logger, log_requests

__all__ = ["configure_logger", "log_requests"]
