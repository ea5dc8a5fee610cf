from models.incident import SEVERITY_RANK, Incident, Severity, Status
from models.snapshot import ProviderIncidents, Snapshot, SourceError

__all__ = [
    "SEVERITY_RANK",
    "Incident",
    "Severity",
    "Status",
    "ProviderIncidents",
    "Snapshot",
    "SourceError",
]
