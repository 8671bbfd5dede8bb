"""
Card components for AgriVerse listings and histories.
"""

from .listing import CardGrid, DataTable, ListingCard, MetaItem

__all__ = ["CardGrid", "DataTable", "ListingCard", "MetaItem"]
