"""Filtering and grouping of resource records.

Exports:
    ResourceFilter   -- Applies FilterCriteria (selector, status, age) to records.
    ResourceGrouper  -- Partitions records into buckets by label, namespace or none.
    parse_group_by   -- Maps a --group-by token to a GroupBy.
    compile_selector -- Memoised LabelSelector.parse.
"""

from kdx.filtering.grouper import ResourceGrouper, parse_group_by
from kdx.filtering.resource_filter import ResourceFilter, compile_selector

__all__ = ["ResourceFilter", "ResourceGrouper", "compile_selector", "parse_group_by"]
