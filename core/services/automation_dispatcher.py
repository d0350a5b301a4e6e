from abc import ABC, abstractmethod
from typing import Any, Dict


class AutomationDispatcher(ABC):
    """Внешний исполнитель автоматизаций (вебхуки). Ответ - непрозрачный JSON"""

    @abstractmethod
    def url_for(self, service: str) -> str:...

    @abstractmethod
    async def dispatch(self, service: str, payload: Dict[str, Any]) -> Dict[str, Any]:...
