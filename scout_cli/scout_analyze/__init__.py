"""Public exports for the scout-analyze package."""

from .classifier import ROLE_KEYWORDS, ROLE_RULES, assign_column_roles, classify_table
from .graph import build_relationship_graph
from .joins import suggest_joins
from .tables import ANALYSIS_TYPES, analyze_tables
from .types import JoinSuggestion, RelationshipGraph, TableClassification

__all__ = [
    "ANALYSIS_TYPES",
    "JoinSuggestion",
    "ROLE_KEYWORDS",
    "ROLE_RULES",
    "RelationshipGraph",
    "TableClassification",
    "analyze_tables",
    "assign_column_roles",
    "build_relationship_graph",
    "classify_table",
    "suggest_joins",
]
