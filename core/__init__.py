from core.cache import SnapshotCache
from core.classifier import classify
from core.dedup import DedupLedger
from core.registry import SourceRegistry
from core.subscribers import InvalidEmailError, SubscriberStore

__all__ = [
    "DedupLedger",
    "InvalidEmailError",
    "SnapshotCache",
    "SourceRegistry",
    "SubscriberStore",
    "classify",
]
