from .catalog_client import CatalogClient
from .counting_client import CountingClient
from .stats_client import StatsClient
from .verification_client import VerificationClient

__all__ = ["CatalogClient", "CountingClient", "StatsClient", "VerificationClient"]
