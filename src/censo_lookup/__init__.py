"""censo-lookup - cached, load-balanced registration lookups over spreadsheet relays."""

from .__version__ import __version__, __version_info__, get_version_string
from .balancer import EndpointPool, PoolStats
from .cache import CacheManager, ColumnIndex, QueryResultCache, SnapshotCache
from .client import RelayClient
from .config import LookupConfig, assemble_config, load_config
from .exceptions import CensoLookupError, ConfigurationError, ProtocolError, TransportError
from .models import ConnectionReport, Dimension, IndexMatch, IndexStatus, LookupResult
from .orchestrator import SearchOrchestrator
from .services import build_orchestrator, open_orchestrator

__all__ = [
    # Services
    "EndpointPool",
    "PoolStats",
    "CacheManager",
    "ColumnIndex",
    "QueryResultCache",
    "SnapshotCache",
    "RelayClient",
    "SearchOrchestrator",
    "build_orchestrator",
    "open_orchestrator",
    # Configuration
    "LookupConfig",
    "assemble_config",
    "load_config",
    # Errors
    "CensoLookupError",
    "ConfigurationError",
    "ProtocolError",
    "TransportError",
    # Models
    "ConnectionReport",
    "Dimension",
    "IndexMatch",
    "IndexStatus",
    "LookupResult",
    # Version info
    "__version__",
    "__version_info__",
    "get_version_string",
]
