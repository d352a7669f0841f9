from typing import Dict, Generic, List, Optional, Protocol, TypeVar
import asyncio

from pydantic import BaseModel


RecordT = TypeVar("RecordT", bound=BaseModel)


class Repository(Protocol[RecordT]):
    """CRUD collaborator keyed by owning subject"""

    async def insert(self, owner_id: int, record_id: str, record: RecordT) -> None:
        ...

    async def select(self, owner_id: int) -> List[RecordT]:
        ...

    async def get(self, owner_id: int, record_id: str) -> Optional[RecordT]:
        ...

    async def update(self, owner_id: int, record_id: str, record: RecordT) -> bool:
        ...

    async def delete(self, owner_id: int, record_id: str) -> bool:
        ...


class InMemoryRepository(Generic[RecordT]):
    """In-process repository; stores and hands out copies so callers never share records"""

    def __init__(self):
        self.records: Dict[int, Dict[str, RecordT]] = {}
        self._lock = asyncio.Lock()

    async def insert(self, owner_id: int, record_id: str, record: RecordT) -> None:
        """Insert or replace a record"""

        async with self._lock:
            self.records.setdefault(owner_id, {})[record_id] = record.model_copy(deep=True)

    async def select(self, owner_id: int) -> List[RecordT]:
        """All records of an owner in insertion order"""

        async with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self.records.get(owner_id, {}).values()
            ]

    async def get(self, owner_id: int, record_id: str) -> Optional[RecordT]:
        """Single record of an owner"""

        async with self._lock:
            record = self.records.get(owner_id, {}).get(record_id)
            return record.model_copy(deep=True) if record is not None else None

    async def update(self, owner_id: int, record_id: str, record: RecordT) -> bool:
        """Replace an existing record, keeping its position"""

        async with self._lock:
            owned = self.records.get(owner_id)
            if owned is None or record_id not in owned:
                return False
            owned[record_id] = record.model_copy(deep=True)
            return True

    async def delete(self, owner_id: int, record_id: str) -> bool:
        """Delete a record"""

        async with self._lock:
            owned = self.records.get(owner_id)
            if owned is None or record_id not in owned:
                return False
            del owned[record_id]
            if not owned:
                del self.records[owner_id]
            return True

    async def get_stats(self) -> Dict[str, int]:
        """Get repository statistics"""

        async with self._lock:
            return {
                "owners": len(self.records),
                "records": sum(len(owned) for owned in self.records.values())
            }
