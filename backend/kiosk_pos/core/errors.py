"""
Errores de dominio del núcleo de caja y listas de precios.

Los servicios lanzan estas excepciones; main.py las traduce a respuestas HTTP
con un único handler, así las rutas quedan delgadas.
"""


class KioskPosError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(KioskPosError, ValueError):
    """Malformed input: negative amounts, missing required fields."""
    code = "validation_error"


class NotFoundError(KioskPosError):
    status_code = 404
    code = "not_found"


class ConflictError(KioskPosError):
    """A state invariant would be violated (e.g. a second open session)."""
    status_code = 409
    code = "conflict"


class InvalidStateError(KioskPosError):
    """Operation attempted against a record in the wrong lifecycle state."""
    status_code = 409
    code = "invalid_state"


class StorageError(KioskPosError):
    """Backing-store failure. Never retried here; the caller decides."""
    status_code = 503
    code = "storage_error"
