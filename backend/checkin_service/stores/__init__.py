from checkin_service.stores.interfaces import Store
from checkin_service.stores.memory_store import MemoryStore
from checkin_service.stores.sql_store import SqlStore

__all__ = ["Store", "MemoryStore", "SqlStore"]
