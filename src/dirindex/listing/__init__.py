"""Virtual directory aggregation and caching engine."""

from .aggregator import Aggregator
from .cache import SnapshotCache, cache_key
from .manifest import discover_manifests, is_manifest_name, parse_manifest, parse_manifest_lines
from .paths import is_within_root, normalize_rel_path, resolve_listing_path
from .query import apply_query
from .scanner import scan_directory
from .service import ListingResult, ListingService, ListingSettings
from .types import AggregateStats, Entry, ManifestParseResult, ManifestRecord, SortKey

__all__ = [
    "AggregateStats",
    "Aggregator",
    "Entry",
    "ListingResult",
    "ListingService",
    "ListingSettings",
    "ManifestParseResult",
    "ManifestRecord",
    "SnapshotCache",
    "SortKey",
    "apply_query",
    "cache_key",
    "discover_manifests",
    "is_manifest_name",
    "is_within_root",
    "normalize_rel_path",
    "parse_manifest",
    "parse_manifest_lines",
    "resolve_listing_path",
    "scan_directory",
]
