from app.db.models.tenant import Tenant
from app.db.models.tenant_cnpj import TenantCNPJ
from app.db.models.user import User
from app.db.models.lancamento import Lancamento

__all__ = [
    "Tenant",
    "TenantCNPJ",
    "User",
    "Lancamento",
]
