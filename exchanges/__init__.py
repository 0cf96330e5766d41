"""
Settlement executors and HTTP clients for external services.
"""

from .base_client import RelayerCredentials, SettlementExecutor  # noqa: F401
from .relayer import RelayerClientError, RelayerSettlementClient  # noqa: F401
