from dataclasses import dataclass
from datetime import datetime
from typing import List, Protocol

from .models import Role


@dataclass
class HistoryRecord:
    id: str
    role: Role
    content: str
    created_at: datetime


class HistoryStore(Protocol):
    """只追加的会话历史存储。"""

    def insert(self, role: Role, content: str) -> HistoryRecord:
        ...

    def query(self, limit: int = 50) -> List[HistoryRecord]:
        ...
