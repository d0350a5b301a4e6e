from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Dict, List, Optional


Row = Dict[str, Any]


class TableStore(ABC):
    """Обобщённый доступ к таблицам: select / insert / update / delete по имени таблицы и фильтру.

    filters  - равенство column = value
    increments - column = column + delta
    guards   - условие column >= value (для условного списания)
    """

    @abstractmethod
    def select(self, table: str, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None,
               descending: bool = False, limit: Optional[int] = None, offset: int = 0) -> List[Row]:...

    @abstractmethod
    def insert(self, table: str, values: Dict[str, Any]) -> Row:...

    @abstractmethod
    def update(self, table: str, values: Optional[Dict[str, Any]] = None, filters: Optional[Dict[str, Any]] = None,
               increments: Optional[Dict[str, int]] = None, guards: Optional[Dict[str, int]] = None) -> int:...

    @abstractmethod
    def delete(self, table: str, filters: Dict[str, Any]) -> int:...

    @abstractmethod
    def count(self, table: str, filters: Optional[Dict[str, Any]] = None) -> int:...

    @abstractmethod
    def total(self, table: str, column: str, filters: Optional[Dict[str, Any]] = None) -> int:...

    @abstractmethod
    def transaction(self) -> AbstractContextManager:...

    def select_one(self, table: str, filters: Dict[str, Any]) -> Optional[Row]:
        rows = self.select(table, filters, limit=1)
        return rows[0] if rows else None
