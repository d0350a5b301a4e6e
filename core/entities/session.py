from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Session:
    id: str
    user_id: int
    issued_at: str
    expires_at: str
    revoked_at: Optional[str] = None

    def is_valid(self, now: datetime) -> bool:
        if self.revoked_at is not None:
            return False
        return datetime.fromisoformat(self.expires_at) > now
