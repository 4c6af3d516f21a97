"""Declarative filters and their URL/JSON wire forms."""

from .collection import FilterCollection
from .models import Filter, FilterComparator

__all__ = ["Filter", "FilterCollection", "FilterComparator"]
