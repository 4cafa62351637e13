from enum import Enum

# Roles de usuario en el sistema
class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"

# Estados posibles de un reporte en el flujo de trabajo
class ReportStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"

# Categorías del catálogo de recompensas
class RewardCategory(str, Enum):
    ITEM = "item"
    BADGE = "badge"
    DISCOUNT = "discount"
