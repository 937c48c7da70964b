import json
import threading
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List
from uuid import uuid4

from aura_core.config.settings import settings
from aura_core.domain.conversation import HistoryRecord, HistoryStore
from aura_core.domain.exceptions import StorageError, ValidationError
from aura_core.domain.models import MESSAGE_ROLES, Role


class JsonHistoryStore(HistoryStore):
    """把对话历史追加写入 ``<root>/history.jsonl``。"""

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / "history.jsonl"
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def insert(self, role: Role, content: str) -> HistoryRecord:
        if role not in MESSAGE_ROLES:
            raise ValidationError(code="INVALID_ROLE", message=f"Unknown role: {role!r}")
        record = HistoryRecord(
            id=f"m-{uuid4().hex}",
            role=role,
            content=content,
            created_at=datetime.now(timezone.utc),
        )
        line = json.dumps(self._to_payload(record), ensure_ascii=False)
        try:
            with self._lock, self._path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            raise StorageError(code="STORE_WRITE_ERROR", message=str(e))
        return record

    def query(self, limit: int = 50) -> List[HistoryRecord]:
        """返回最近 limit 条记录，按时间先后排序。"""

        if limit < 1:
            return []
        if not self._path.exists():
            return []
        window: deque = deque(maxlen=limit)
        try:
            with self._lock, self._path.open("r", encoding="utf-8") as f:
                for line in f:
                    if not line.strip():
                        continue
                    try:
                        window.append(self._to_record(json.loads(line)))
                    except (ValueError, KeyError, TypeError):
                        continue
        except OSError as e:
            raise StorageError(code="STORE_READ_ERROR", message=str(e))
        items = list(window)
        items.sort(key=lambda r: r.created_at)
        return items

    @staticmethod
    def _to_payload(record: HistoryRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "role": record.role,
            "content": record.content,
            "created_at": record.created_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    @staticmethod
    def _to_record(data: Dict[str, Any]) -> HistoryRecord:
        return HistoryRecord(
            id=data["id"],
            role=data["role"],
            content=data.get("content") or "",
            created_at=datetime.fromisoformat(str(data["created_at"]).replace("Z", "+00:00")),
        )
