from storage.base import PersistenceSink
from storage.json_file import JsonFileSink

__all__ = ["JsonFileSink", "PersistenceSink"]
