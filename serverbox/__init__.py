from .downloader import ArtifactDownloader
from .manager import ServerManager
from .models import ResolvedBuild, RunOutcome, RunResult, RunSettings, ServerRecord
from .registry import Registry
from .resolver import BuildResolver
from .supervisor import ProcessSupervisor

__all__ = [
    "ArtifactDownloader",
    "BuildResolver",
    "ProcessSupervisor",
    "Registry",
    "ResolvedBuild",
    "RunOutcome",
    "RunResult",
    "RunSettings",
    "ServerManager",
    "ServerRecord",
]
