"""dirindex - read-only directory index with virtual entries.

Real directory contents are merged with virtual entries declared in
``drive*.txt`` manifests, cached per directory and served through a
filterable, sortable listing.
"""

__version__ = "1.0.0"

from dirindex.listing import Entry, ListingResult, ListingService, ListingSettings, SortKey

__all__ = [
    "Entry",
    "ListingResult",
    "ListingService",
    "ListingSettings",
    "SortKey",
    "__version__",
]
