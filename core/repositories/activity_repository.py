from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from core.entities.activity import Submission, Interaction


class ActivityRepository(ABC):
    @abstractmethod
    def add_submission(self, user_id: int, request_type: str, request_details: str, service: str,
                       response_data: Optional[Dict[str, Any]], status: str) -> Submission:...

    @abstractmethod
    def add_interaction(self, user_id: int, action: str, service: str, request_data: Optional[Dict[str, Any]],
                        response_data: Optional[Dict[str, Any]], status: str) -> Interaction:...

    @abstractmethod
    def list_submissions(self, user_id: int, limit: int = 100) -> List[Submission]:...

    @abstractmethod
    def list_interactions(self, user_id: int, limit: int = 100) -> List[Interaction]:...

    @abstractmethod
    def count_interactions(self, status: Optional[str] = None) -> int:...


class DraftRepository(ABC):
    @abstractmethod
    def save_draft(self, user_id: int, name: str, data: Dict[str, Any]) -> Dict[str, Any]:...

    @abstractmethod
    def load_draft(self, user_id: int, name: str) -> Optional[Dict[str, Any]]:...

    @abstractmethod
    def clear_draft(self, user_id: int, name: str) -> None:...
