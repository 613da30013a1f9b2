# Marketplace-specific adapters
# Each platform's column vocabulary lives in profiles.py; loading is shared

from .profiles import PLATFORM_LABELS, Platform, get_labels
from .loader import LoadedImport, MarketplaceLoader, read_rows

__all__ = [
    "PLATFORM_LABELS",
    "Platform",
    "get_labels",
    "LoadedImport",
    "MarketplaceLoader",
    "read_rows",
]
