"""
Excepciones de negocio compartidas por los servicios SQL y NoSQL.

La capa HTTP traduce cada tipo a un código de estado:
- NotFoundError → 404
- AlreadyRegisteredError, CapacityExceededError, InvalidRequestError → 400
- DocumentStoreUnavailableError → 503
"""


class ServiceError(Exception):
    """Error base de la capa de servicios."""


class NotFoundError(ServiceError):
    pass


class AlreadyRegisteredError(ServiceError):
    pass


class CapacityExceededError(ServiceError):
    pass


class InvalidRequestError(ServiceError):
    """Petición incompleta (ej: submission sin nombre o sin equipo)."""


class DocumentStoreUnavailableError(ServiceError):
    """MongoDB no responde: se corta antes de ejecutar cualquier query."""
