"""Core datatypes shared by the table classifier, relationship graph, and join engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

# ----- Classification -----------------------------------------------------------------------

ROLE_USER_DIMENSION = "user_dimension"
ROLE_USER_EVENTS = "user_events"
ROLE_FACT_TABLE = "fact_table"
ROLE_DIMENSION_TABLE = "dimension_table"
ROLE_LOOKUP_TABLE = "lookup_table"
ROLE_UNKNOWN = "unknown"

ROLE_TYPES = (
    ROLE_USER_DIMENSION,
    ROLE_USER_EVENTS,
    ROLE_FACT_TABLE,
    ROLE_DIMENSION_TABLE,
    ROLE_LOOKUP_TABLE,
    ROLE_UNKNOWN,
)

ROLE_TRAITS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        ROLE_USER_DIMENSION: frozenset({"user", "dimension"}),
        ROLE_USER_EVENTS: frozenset({"event", "fact"}),
        ROLE_FACT_TABLE: frozenset({"fact"}),
        ROLE_DIMENSION_TABLE: frozenset({"dimension"}),
        ROLE_LOOKUP_TABLE: frozenset({"lookup"}),
        ROLE_UNKNOWN: frozenset(),
    }
)


@dataclass(frozen=True, slots=True)
class ColumnRoles:
    """Column names grouped by the role their name or type suggests, in table order."""

    identifier: tuple[str, ...] = ()
    user: tuple[str, ...] = ()
    time: tuple[str, ...] = ()
    behavior: tuple[str, ...] = ()
    metric: tuple[str, ...] = ()
    dimension: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    """One entry of the ordered rule table; the first matching predicate wins."""

    role_type: str
    confidence: float
    predicate: Callable[[ColumnRoles, int, int], bool]


@dataclass(frozen=True, slots=True)
class TableClassification:
    table_name: str
    role_type: str
    confidence: float
    roles: ColumnRoles = field(default_factory=ColumnRoles)
    focus_area: str = "general"

    @property
    def traits(self) -> frozenset[str]:
        return ROLE_TRAITS[self.role_type]

    @property
    def is_fact_table(self) -> bool:
        return "fact" in self.traits

    @property
    def is_dimension_table(self) -> bool:
        return "dimension" in self.traits

    @property
    def is_user_table(self) -> bool:
        return "user" in self.traits

    @property
    def is_event_table(self) -> bool:
        return "event" in self.traits

    @property
    def is_lookup_table(self) -> bool:
        return "lookup" in self.traits

    def to_dict(self) -> dict[str, Any]:
        return {
            "table_name": self.table_name,
            "role_type": self.role_type,
            "confidence": self.confidence,
            "identifier_columns": list(self.roles.identifier),
            "user_columns": list(self.roles.user),
            "time_columns": list(self.roles.time),
            "behavior_columns": list(self.roles.behavior),
            "metric_columns": list(self.roles.metric),
            "dimension_columns": list(self.roles.dimension),
            "focus_area": self.focus_area,
            "is_fact_table": self.is_fact_table,
            "is_dimension_table": self.is_dimension_table,
            "is_user_table": self.is_user_table,
            "is_event_table": self.is_event_table,
            "is_lookup_table": self.is_lookup_table,
        }


# ----- Relationship graph -------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GraphLink:
    """An edge seen from one endpoint: the other table and the columns involved."""

    table: str
    via_column: str
    target_column: str

    def to_dict(self) -> dict[str, str]:
        return {"table": self.table, "via_column": self.via_column, "target_column": self.target_column}


@dataclass(frozen=True, slots=True)
class GraphNode:
    references: tuple[GraphLink, ...] = ()
    referenced_by: tuple[GraphLink, ...] = ()

    def to_dict(self) -> dict[str, list[dict[str, str]]]:
        return {
            "references": [link.to_dict() for link in self.references],
            "referenced_by": [link.to_dict() for link in self.referenced_by],
        }


@dataclass(frozen=True, slots=True)
class RelationshipGraph:
    """Read-only adjacency view over a set of foreign-key edges."""

    nodes: Mapping[str, GraphNode] = field(default_factory=lambda: MappingProxyType({}))

    def __contains__(self, table: object) -> bool:
        return table in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, table: str) -> GraphNode:
        return self.nodes.get(table, GraphNode())

    def incoming_count(self, table: str) -> int:
        return len(self.node(table).referenced_by)

    def outgoing_count(self, table: str) -> int:
        return len(self.node(table).references)

    def to_dict(self) -> dict[str, Any]:
        return {table: node.to_dict() for table, node in self.nodes.items()}


# ----- Join suggestions ---------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class JoinSuggestion:
    from_table: str
    to_table: str
    condition: str
    relationship: str
    join_type: str = "INNER JOIN"
    common_columns: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": self.from_table,
            "to": self.to_table,
            "join_type": self.join_type,
            "condition": self.condition,
            "relationship": self.relationship,
        }
        if self.common_columns:
            payload["common_columns"] = list(self.common_columns)
        return payload
