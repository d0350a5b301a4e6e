from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any


class AdminLogRepository(ABC):
    @abstractmethod
    def log_action(self, admin_id: int, action: str, target_user_id: Optional[int],
                   details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:...

    @abstractmethod
    def list_actions(self, limit: int = 100) -> List[Dict[str, Any]]:...
