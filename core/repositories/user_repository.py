from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from core.entities.user import User
from core.entities.session import Session


class UserRepository(ABC):
    @abstractmethod
    def create_user(self, email: str, password_hash: str, full_name: str, business_name: str,
                    website: Optional[str] = None, phone: Optional[str] = None, role: str = "user") -> User:...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:...

    @abstractmethod
    def get_by_id(self, user_id: int) -> Optional[User]:...

    @abstractmethod
    def list_users(self, limit: int = 100, offset: int = 0) -> List[User]:...

    @abstractmethod
    def update_user(self, user_id: int, fields: Dict[str, Any]) -> User:...

    @abstractmethod
    def delete_user(self, user_id: int) -> None:...

    @abstractmethod
    def count_users(self, status: Optional[str] = None) -> int:...


class SessionRepository(ABC):
    @abstractmethod
    def create_session(self, session: Session) -> Session:...

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[Session]:...

    @abstractmethod
    def revoke_session(self, session_id: str, revoked_at: str) -> None:...
