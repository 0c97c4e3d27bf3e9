"""
Relationship Analysis Tool

Turns foreign keys into table-level relationships and analyzes the resulting
dependency graph:
- Relationship extraction and per-table incoming/outgoing views
- Dependency graph construction
- Circular dependency detection
- Cascade-delete impact chains
- Topological population order for data seeding
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ..models import ForeignKey, ReferentialAction, Table


@dataclass(frozen=True)
class Relationship:
    """A directed edge: ``from_table.from_column`` references ``to_table.to_column``."""

    from_table: str
    from_column: str
    to_table: str
    to_column: str
    on_delete: ReferentialAction | None = None
    on_update: ReferentialAction | None = None

    def __post_init__(self) -> None:
        for attr in ("from_table", "from_column", "to_table", "to_column"):
            value = getattr(self, attr)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Relationship {attr} cannot be empty")
            object.__setattr__(self, attr, value.strip())
        object.__setattr__(self, "on_delete", ReferentialAction.parse(self.on_delete))
        object.__setattr__(self, "on_update", ReferentialAction.parse(self.on_update))

    @classmethod
    def from_foreign_key(cls, fk: ForeignKey) -> "Relationship":
        return cls(
            from_table=fk.table,
            from_column=fk.column,
            to_table=fk.references_table,
            to_column=fk.references_column,
            on_delete=fk.on_delete,
            on_update=fk.on_update,
        )

    def is_required(self) -> bool:
        """CASCADE or RESTRICT: the child cannot outlive its parent."""
        return self.on_delete in (ReferentialAction.CASCADE, ReferentialAction.RESTRICT)

    def is_optional(self) -> bool:
        return self.on_delete in (None, ReferentialAction.SET_NULL, ReferentialAction.NO_ACTION)

    def cascades_on_delete(self) -> bool:
        return self.on_delete is ReferentialAction.CASCADE

    def is_self_referential(self) -> bool:
        return self.from_table == self.to_table

    def get_description(self) -> str:
        return f"{self.from_table}.{self.from_column} → {self.to_table}.{self.to_column}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_table": self.from_table,
            "from_column": self.from_column,
            "to_table": self.to_table,
            "to_column": self.to_column,
            "on_delete": self.on_delete.value if self.on_delete else None,
            "on_update": self.on_update.value if self.on_update else None,
            "is_required": self.is_required(),
        }


@dataclass(frozen=True)
class GraphEdge:
    """Dependency edge between two tables, labelled with the referencing column."""

    from_table: str
    to_table: str
    column: str


@dataclass(frozen=True)
class DependencyGraph:
    """Table dependency graph; nodes are sorted, edges keep relationship order."""

    nodes: tuple[str, ...]
    edges: tuple[GraphEdge, ...]

    def successors(self) -> dict[str, list[str]]:
        """Adjacency list in the referencing direction (child → parent)."""
        adjacency: dict[str, list[str]] = {node: [] for node in self.nodes}
        for edge in self.edges:
            adjacency[edge.from_table].append(edge.to_table)
        return adjacency

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": list(self.nodes),
            "edges": [
                {"from": edge.from_table, "to": edge.to_table, "column": edge.column}
                for edge in self.edges
            ],
        }


@dataclass(frozen=True)
class TableRelationships:
    """Relationships of a single table."""

    outgoing: tuple[Relationship, ...]  # this table references others
    incoming: tuple[Relationship, ...]  # other tables reference this one


@dataclass(frozen=True)
class PopulationPlan:
    """Seeding order plus the tables left out because they sit on a cycle."""

    order: tuple[str, ...]
    unresolved: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_complete(self) -> bool:
        return not self.unresolved


class RelationshipAnalyzer:
    """
    Stateless analysis of foreign-key relationships.

    All methods are pure functions over the relationships (or tables) they
    receive; the analyzer keeps no state between calls.
    """

    def extract_relationships(self, tables: list[Table] | tuple[Table, ...]) -> list[Relationship]:
        """
        Flatten every foreign key into a Relationship.

        Args:
            tables: Tables in introspection order

        Returns:
            Relationships ordered by table, then by declared foreign key order
        """
        relationships = [
            Relationship.from_foreign_key(fk) for table in tables for fk in table.foreign_keys
        ]
        logger.debug(f"Extracted {len(relationships)} relationships from {len(tables)} tables")
        return relationships

    def get_relationships_for_table(
        self, table_name: str, relationships: list[Relationship]
    ) -> TableRelationships:
        """Split the relationships touching a table into outgoing and incoming."""
        return TableRelationships(
            outgoing=tuple(rel for rel in relationships if rel.from_table == table_name),
            incoming=tuple(rel for rel in relationships if rel.to_table == table_name),
        )

    def build_dependency_graph(self, relationships: list[Relationship]) -> DependencyGraph:
        """Graph with one node per table and one edge per relationship."""
        nodes = {rel.from_table for rel in relationships} | {rel.to_table for rel in relationships}
        edges = tuple(
            GraphEdge(from_table=rel.from_table, to_table=rel.to_table, column=rel.from_column)
            for rel in relationships
        )
        return DependencyGraph(nodes=tuple(sorted(nodes)), edges=edges)

    def detect_circular_dependencies(self, relationships: list[Relationship]) -> list[list[str]]:
        """
        Detect cycles with a depth-first traversal.

        Each back-edge into the current traversal path yields one cycle, listed
        from the revisited table through the current table and closed with the
        revisited table again. A self-referencing foreign key yields ``[t, t]``.

        Args:
            relationships: Relationships to analyze

        Returns:
            Detected cycles, in discovery order
        """
        graph = self.build_dependency_graph(relationships)
        adjacency = graph.successors()
        visited: set[str] = set()
        on_path: set[str] = set()
        cycles: list[list[str]] = []

        for root in graph.nodes:
            if root in visited:
                continue

            visited.add(root)
            on_path.add(root)
            frames = [(root, [root], iter(adjacency[root]))]

            while frames:
                node, path, successors = frames[-1]
                target = next(successors, None)

                if target is None:
                    frames.pop()
                    on_path.discard(node)
                elif target not in visited:
                    visited.add(target)
                    on_path.add(target)
                    frames.append((target, [*path, target], iter(adjacency[target])))
                elif target in on_path:
                    start = path.index(target)
                    cycles.append([*path[start:], target])

        if cycles:
            logger.info(f"Detected {len(cycles)} circular dependencies")
        return cycles

    def get_cascade_chains(self, table_name: str, relationships: list[Relationship]) -> list[list[str]]:
        """
        Follow ON DELETE CASCADE edges outward from a table.

        Every chain starts at ``table_name`` and extends through tables whose
        foreign key cascades into the previous table. A table with no cascading
        dependents yields the single chain ``[table_name]``. A table already on
        the chain ends it, so cascading cycles terminate.

        Args:
            table_name: Table whose rows are deleted
            relationships: All relationships of the schema

        Returns:
            Chains in depth-first order
        """
        cascading: dict[str, list[str]] = defaultdict(list)
        for rel in relationships:
            if rel.cascades_on_delete():
                cascading[rel.to_table].append(rel.from_table)

        chains: list[list[str]] = []
        pending = [[table_name]]
        while pending:
            path = pending.pop()
            children = [child for child in cascading[path[-1]] if child not in path]
            if not children:
                chains.append(path)
                continue
            for child in reversed(children):
                pending.append([*path, child])

        return chains

    def get_self_referential_relationships(self, relationships: list[Relationship]) -> list[Relationship]:
        """Relationships whose table references itself."""
        return [rel for rel in relationships if rel.is_self_referential()]

    def get_required_relationships(self, relationships: list[Relationship]) -> list[Relationship]:
        """Relationships that delete with CASCADE or RESTRICT."""
        return [rel for rel in relationships if rel.is_required()]

    def get_optional_relationships(self, relationships: list[Relationship]) -> list[Relationship]:
        """Relationships whose child rows do not have to follow a deleted parent."""
        return [rel for rel in relationships if rel.is_optional()]

    def get_independent_tables(self, tables: list[Table] | tuple[Table, ...]) -> list[Table]:
        """Tables with no outgoing foreign keys; they can be populated first."""
        return [table for table in tables if not table.has_foreign_keys()]

    def get_population_plan(self, relationships: list[Relationship]) -> PopulationPlan:
        """
        Order tables so each one comes after every table it references.

        Kahn's algorithm over the referencing direction: a table's in-degree is
        the number of foreign keys it owns towards other tables. Self-references
        do not constrain the order. Tables on a cycle never reach in-degree zero;
        they are reported as unresolved instead of being guessed into place.

        Args:
            relationships: All relationships of the schema

        Returns:
            PopulationPlan with the order and any unresolved tables
        """
        graph = self.build_dependency_graph(relationships)
        in_degree = {node: 0 for node in graph.nodes}
        dependents: dict[str, list[str]] = defaultdict(list)

        for edge in graph.edges:
            if edge.from_table == edge.to_table:
                continue
            in_degree[edge.from_table] += 1
            dependents[edge.to_table].append(edge.from_table)

        queue = deque(node for node in graph.nodes if in_degree[node] == 0)
        order: list[str] = []

        while queue:
            node = queue.popleft()
            order.append(node)
            for dependent in dependents[node]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        placed = set(order)
        unresolved = tuple(node for node in graph.nodes if node not in placed)
        if unresolved:
            logger.warning(
                f"Population order incomplete, tables on dependency cycles: {', '.join(unresolved)}"
            )

        return PopulationPlan(order=tuple(order), unresolved=unresolved)

    def get_population_order(self, relationships: list[Relationship]) -> list[str]:
        """Seeding order; tables on cycles are omitted (see ``get_population_plan``)."""
        return list(self.get_population_plan(relationships).order)
