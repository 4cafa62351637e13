"""
Errores de dominio del ledger de puntos y del catálogo de recompensas.
main.py los traduce a respuestas HTTP con su status_code.
"""


class LedgerError(Exception):
    status_code = 400
    default_detail = "Operación no permitida"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class PermissionDenied(LedgerError):
    status_code = 403
    default_detail = "No tienes permisos para esta operación"


class ReportNotFound(LedgerError):
    status_code = 404
    default_detail = "Reporte no encontrado"


class RewardNotFound(LedgerError):
    status_code = 404
    default_detail = "Recompensa no encontrada"


class InvalidTransition(LedgerError):
    status_code = 409
    default_detail = "Transición de estado inválida"
