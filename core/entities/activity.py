from dataclasses import dataclass
from typing import Any, Dict, Optional


STATUSES = ("pending", "success", "error")


@dataclass
class Submission:
    id: Optional[int]
    user_id: int
    request_type: str
    request_details: str
    service: str
    response_data: Optional[Dict[str, Any]]
    status: str
    created_at: str


@dataclass
class Interaction:
    id: Optional[int]
    user_id: int
    action: str
    service: str
    request_data: Optional[Dict[str, Any]]
    response_data: Optional[Dict[str, Any]]
    status: str
    created_at: str
