from dataclasses import dataclass
from typing import Optional


ROLES = ("user", "admin")
STATUSES = ("active", "inactive", "suspended")


@dataclass
class User:
    id: Optional[int]
    email: str
    password_hash: str
    full_name: str
    business_name: str
    created_at: str
    website: Optional[str] = None
    phone: Optional[str] = None
    role: str = "user"      # user | admin
    status: str = "active"  # active | inactive | suspended

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_active(self) -> bool:
        return self.status == "active"
