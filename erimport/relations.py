# File: erimport/relations.py
"""
ERImport - Relation Resolution
================================
Turns reference edges into relations with an inferred cardinality.

OpenAPI only says that a property *points at* another schema.  How many
rows sit on each side is inferred by looking at the other side as well:

=================  ============  ============  ======================
forward is array   back-ref      back is array cardinality
=================  ============  ============  ======================
no                 no            -             ManyToOne (one-way)
yes                no            -             OneToMany (one-way)
no                 yes           no            OneToOne
no                 yes           yes           ManyToOne (two-way)
yes                yes           no            OneToMany (two-way)
yes                yes           yes           ManyToMany
=================  ============  ============  ======================

Each unordered schema pair yields at most one relation.  The owning edge of
a pair is its first non-array edge (the side that holds the foreign key),
falling back to its first edge, so the result does not depend on which of
the two schemas is declared first.  Other edges of the pair, apart from the
owning edge's back-reference, are reported as skipped.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from erimport.classifier import SchemaView
from erimport.diagnostics import COLLAPSED_RELATION, UNRESOLVED_RELATION, ValidationResult
from erimport.models import (
    Cardinality,
    EntityInfo,
    ForeignKeyInfo,
    JoinTableInfo,
    RelationInfo,
)
from erimport.references import BackReference, ReferenceEdge, find_back_reference
from erimport.utils import new_id, to_singular, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.relations")

# ---------------------------------------------------------------------------
# Cardinality decision table: (forward is array, has back-ref, back is array)
# ---------------------------------------------------------------------------

CARDINALITY_TABLE: Dict[Tuple[bool, bool, Optional[bool]], Cardinality] = {
    (False, False, None): Cardinality.MANY_TO_ONE,
    (True, False, None): Cardinality.ONE_TO_MANY,
    (False, True, False): Cardinality.ONE_TO_ONE,
    (False, True, True): Cardinality.MANY_TO_ONE,
    (True, True, False): Cardinality.ONE_TO_MANY,
    (True, True, True): Cardinality.MANY_TO_MANY,
}


def decide_cardinality(
    is_array: bool,
    has_back: bool,
    back_is_array: Optional[bool] = None,
) -> Cardinality:
    """Look up the cardinality for one forward edge and its back-reference."""
    key: Tuple[bool, bool, Optional[bool]] = (
        bool(is_array),
        bool(has_back),
        bool(back_is_array) if has_back else None,
    )
    return CARDINALITY_TABLE[key]


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def foreign_key_column(field_name: str) -> str:
    """
    Examples:
        >>> foreign_key_column("author")
        'author_id'
        >>> foreign_key_column("billingAddress")
        'billing_address_id'
    """
    return f"{to_snake_case(field_name)}_id"


def join_table_for(
    source: EntityInfo,
    target: EntityInfo,
    back: Optional[BackReference] = None,
) -> JoinTableInfo:
    """Association table for a many-to-many relation between two entities."""
    join_column: str = f"{source.table_name}_id"
    inverse_join_column: str = f"{target.table_name}_id"
    if inverse_join_column == join_column and back is not None:
        inverse_join_column = f"{to_snake_case(to_singular(back.field_name))}_id"
    return JoinTableInfo(
        name=f"{source.table_name}_{target.table_name}",
        join_column=join_column,
        inverse_join_column=inverse_join_column,
    )


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _unresolved_message(edge: ReferenceEdge, views: Dict[str, SchemaView]) -> str:
    reason: str = (
        "is not an entity" if edge.target in views else "was not found in the document"
    )
    return (
        f"Skipped relation {edge.source}.{edge.property_name} -> {edge.target}: "
        f"schema '{edge.target}' {reason}"
    )


def owning_edge(edges: Sequence[ReferenceEdge]) -> ReferenceEdge:
    """First non-array edge of a pair, else the first edge."""
    for edge in edges:
        if not edge.is_array:
            return edge
    return edges[0]


def group_edges(
    edges: Sequence[ReferenceEdge],
    entities_by_schema: Dict[str, EntityInfo],
    views: Dict[str, SchemaView],
) -> Tuple[Dict[str, List[ReferenceEdge]], ValidationResult]:
    """
    Drop edges whose target is not an entity and group the rest by pair.

    Groups keep the order in which each pair was first seen.
    """
    result: ValidationResult = ValidationResult()
    groups: Dict[str, List[ReferenceEdge]] = {}

    for edge in edges:
        if edge.source not in entities_by_schema or edge.target not in entities_by_schema:
            result.add_warning(
                UNRESOLVED_RELATION,
                _unresolved_message(edge, views),
                {
                    "source": edge.source,
                    "field": edge.property_name,
                    "target": edge.target,
                },
            )
            continue
        groups.setdefault(edge.pair_key, []).append(edge)

    return groups, result


def build_relation(
    edge: ReferenceEdge,
    views: Dict[str, SchemaView],
    entities_by_schema: Dict[str, EntityInfo],
) -> RelationInfo:
    """Build the relation for an owning edge."""
    source: EntityInfo = entities_by_schema[edge.source]
    target: EntityInfo = entities_by_schema[edge.target]

    back: Optional[BackReference] = find_back_reference(
        edge.source,
        views[edge.target],
        exclude_property=edge.property_name if edge.is_self_reference else None,
    )
    cardinality: Cardinality = decide_cardinality(
        edge.is_array,
        back is not None,
        back.is_array if back is not None else None,
    )

    join_table: Optional[JoinTableInfo] = None
    if cardinality == Cardinality.MANY_TO_MANY:
        join_table = join_table_for(source, target, back)

    relation: RelationInfo = RelationInfo(
        id=new_id(),
        type=cardinality,
        source_entity_id=source.id,
        target_entity_id=target.id,
        source_field_name=edge.field_name,
        target_field_name=back.field_name if back is not None else None,
        bidirectional=back is not None,
        foreign_key=ForeignKeyInfo(column_name=foreign_key_column(edge.field_name)),
        join_table=join_table,
    )
    logger.debug(
        "Relation %s.%s -> %s: %s (bidirectional=%s).",
        edge.source,
        edge.property_name,
        edge.target,
        cardinality.value,
        relation.bidirectional,
    )
    return relation


def collapsed_edges(
    group: Sequence[ReferenceEdge],
    owner: ReferenceEdge,
    relation: RelationInfo,
) -> List[ReferenceEdge]:
    """Edges of a pair that are neither the owning edge nor its back-reference."""
    return [
        edge
        for edge in group
        if edge != owner
        and not (
            edge.source == owner.target
            and edge.field_name == relation.target_field_name
        )
    ]


def resolve_relations(
    edges: Sequence[ReferenceEdge],
    views: Dict[str, SchemaView],
    entities_by_schema: Dict[str, EntityInfo],
) -> Tuple[List[RelationInfo], ValidationResult]:
    """
    Resolve all reference edges into relations.

    Args:
        edges: Reference edges of every entity view, in view order.
        views: Flattened views of every schema, keyed by schema name.
        entities_by_schema: Built entities keyed by their schema name.

    Returns:
        Tuple of (relations in order of first pair appearance, diagnostics).
    """
    groups, result = group_edges(edges, entities_by_schema, views)

    relations: List[RelationInfo] = []
    for group in groups.values():
        owner: ReferenceEdge = owning_edge(group)
        relation: RelationInfo = build_relation(owner, views, entities_by_schema)
        relations.append(relation)
        for edge in collapsed_edges(group, owner, relation):
            result.add_warning(
                COLLAPSED_RELATION,
                f"Skipped relation {edge.source}.{edge.property_name} -> {edge.target}: "
                f"pair already related through {owner.source}.{owner.property_name}",
                {
                    "source": edge.source,
                    "field": edge.property_name,
                    "target": edge.target,
                },
            )

    logger.info(
        "Resolved %d relation(s) from %d reference edge(s); %d skipped.",
        len(relations),
        len(edges),
        len(result),
    )
    return relations, result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CARDINALITY_TABLE",
    "decide_cardinality",
    "foreign_key_column",
    "join_table_for",
    "owning_edge",
    "group_edges",
    "collapsed_edges",
    "build_relation",
    "resolve_relations",
]

logger.debug("erimport.relations loaded — %d public symbols.", len(__all__))
