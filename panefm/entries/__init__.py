"""Entry model and directory scanning."""

from .fs import ListingOptions, read_directory, sort_entries
from .types import Entry, Listing, entry_info, format_mtime, format_size

__all__ = [
    "Entry",
    "Listing",
    "ListingOptions",
    "entry_info",
    "format_mtime",
    "format_size",
    "read_directory",
    "sort_entries",
]
