"""
Resource Graph

Declares the execution resources of a pipeline (dispatch slots, issue ports,
execution pipelines) and the relations between them:

- Superset/subset containment. A resource may name one superset it is a
  physical subset of, e.g. the even half of the ALU pipelines is a subset of
  the combined ALU resource. The relation forms a tree.
- Groups. A group is an alias for "any one of these resources" and is not a
  physical unit. Groups never nest.

The graph is stored as a networkx DiGraph:

    ALU (4) --contains--> ALUE (2)
            --contains--> ALUO (2)
    ANY_PIPE --member--> ALU
             --member--> DP

Example:
    graph = ResourceGraph()
    graph.define_resource("ALU", 4)
    graph.define_resource("ALUE", 2, superset="ALU")
    graph.define_resource("ALUO", 2, superset="ALU")
    graph.expand("ALU")    # frozenset({'ALUE', 'ALUO'})
    graph.expand("ALUE")   # frozenset({'ALUE'})
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

import networkx as nx

from .errors import (
    CapacityOverflowError,
    DuplicateIdError,
    InvalidCapacityError,
    InvalidGroupError,
    ModelFrozenError,
    UnknownResourceError,
)


CONTAINS = "contains"
MEMBER = "member"


@dataclass(frozen=True)
class ExecutionResource:
    """
    An atomic hardware unit class.

    Attributes:
        id: Unique resource name (e.g., "ALU", "DPE")
        capacity: Number of identical, interchangeable instances
        superset: Parent aggregate this resource is a physical subset of
        buffer_size: In-flight queue capacity when the resource also buffers
    """
    id: str
    capacity: int
    superset: Optional[str] = None
    buffer_size: Optional[int] = None

    @property
    def is_subset(self) -> bool:
        return self.superset is not None


@dataclass(frozen=True)
class ResourceGroup:
    """Alias for "any one of these resources"; resolves to one member."""
    id: str
    members: Tuple[str, ...]


ResourceRef = Union[ExecutionResource, ResourceGroup]


class ResourceGraph:
    """
    Containment and group-membership graph of execution resources.

    Definitions are validated eagerly. Once freeze() has been called the
    graph is a pure lookup structure.
    """

    def __init__(self):
        self._graph = nx.DiGraph()
        self._resources: Dict[str, ExecutionResource] = {}
        self._groups: Dict[str, ResourceGroup] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def define_resource(
        self,
        id: str,
        capacity: int,
        superset: Optional[str] = None,
        buffer_size: Optional[int] = None,
    ) -> ExecutionResource:
        """
        Declare an execution resource.

        Args:
            id: Resource name, unique across resources and groups
            capacity: Number of parallel instances (>= 1)
            superset: Previously declared resource this one is a subset of
            buffer_size: Optional in-flight capacity (>= 0)

        Raises:
            DuplicateIdError: id already names a resource or group
            InvalidCapacityError: capacity < 1 or negative buffer size
            UnknownResourceError: superset is not a declared resource
            CapacityOverflowError: the subsets of superset would exceed
                its capacity
        """
        self._check_mutable()
        self._check_new_id(id)

        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise InvalidCapacityError(
                f"Resource '{id}' capacity must be an integer >= 1, got {capacity!r}"
            )
        if buffer_size is not None and buffer_size < 0:
            raise InvalidCapacityError(
                f"Resource '{id}' buffer size must be >= 0, got {buffer_size}"
            )

        if superset is not None:
            parent = self._resources.get(superset)
            if parent is None:
                raise UnknownResourceError(superset, context=f"resource '{id}'")
            if capacity > parent.capacity:
                raise CapacityOverflowError(
                    f"Subset '{id}' capacity {capacity} exceeds superset "
                    f"'{superset}' capacity {parent.capacity}"
                )
            used = sum(self._resources[s].capacity for s in self.subsets_of(superset))
            if used + capacity > parent.capacity:
                raise CapacityOverflowError(
                    f"Subsets of '{superset}' would total {used + capacity} units, "
                    f"exceeding its capacity of {parent.capacity}"
                )

        resource = ExecutionResource(
            id=id, capacity=capacity, superset=superset, buffer_size=buffer_size
        )
        self._resources[id] = resource
        self._graph.add_node(id, kind="resource", capacity=capacity)
        if superset is not None:
            self._graph.add_edge(superset, id, kind=CONTAINS)
        return resource

    def define_group(self, id: str, members: Iterable[str]) -> ResourceGroup:
        """
        Declare a group meaning "any one of these resources".

        Raises:
            DuplicateIdError: id already names a resource or group
            InvalidGroupError: members is empty, repeats a member, or names
                another group
            UnknownResourceError: a member is undeclared
        """
        self._check_mutable()
        self._check_new_id(id)

        members = tuple(members)
        if not members:
            raise InvalidGroupError(f"Group '{id}' must have at least one member")
        if len(set(members)) != len(members):
            raise InvalidGroupError(f"Group '{id}' lists a member more than once")
        for member in members:
            if member in self._groups:
                raise InvalidGroupError(
                    f"Group '{id}' cannot contain group '{member}'; groups do not nest"
                )
            if member not in self._resources:
                raise UnknownResourceError(member, context=f"group '{id}'")

        group = ResourceGroup(id=id, members=members)
        self._groups[id] = group
        self._graph.add_node(id, kind="group")
        for member in members:
            self._graph.add_edge(id, member, kind=MEMBER)
        return group

    def freeze(self) -> 'ResourceGraph':
        """Make the graph read-only. Returns self."""
        if not self._frozen:
            self._graph = nx.freeze(self._graph)
            self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self):
        if self._frozen:
            raise ModelFrozenError("Resource graph is frozen; the model was already built")

    def _check_new_id(self, id: str):
        if id in self._resources:
            raise DuplicateIdError("Resource", id)
        if id in self._groups:
            raise DuplicateIdError("Group", id)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __contains__(self, id: str) -> bool:
        return id in self._resources or id in self._groups

    def get(self, id: str) -> ResourceRef:
        """Return the resource or group named id."""
        if id in self._resources:
            return self._resources[id]
        if id in self._groups:
            return self._groups[id]
        raise UnknownResourceError(id)

    def is_group(self, id: str) -> bool:
        return id in self._groups

    @property
    def resources(self) -> List[ExecutionResource]:
        return list(self._resources.values())

    @property
    def groups(self) -> List[ResourceGroup]:
        return list(self._groups.values())

    @property
    def graph(self) -> nx.DiGraph:
        """The underlying networkx graph (frozen once the model is built)."""
        return self._graph

    def capacity(self, id: str) -> int:
        """Capacity of a resource, or the summed capacity of a group's members."""
        ref = self.get(id)
        if isinstance(ref, ResourceGroup):
            return sum(self._resources[m].capacity for m in ref.members)
        return ref.capacity

    def superset_of(self, id: str) -> Optional[str]:
        ref = self.get(id)
        if isinstance(ref, ResourceGroup):
            return None
        return ref.superset

    def subsets_of(self, id: str) -> List[str]:
        """Direct subsets of a resource, in declaration order."""
        if id not in self._resources:
            raise UnknownResourceError(id)
        return [
            child for child in self._graph.successors(id)
            if self._graph.edges[id, child]["kind"] == CONTAINS
        ]

    def supersets(self, id: str) -> Tuple[str, ...]:
        """Ancestor chain of a resource, nearest superset first."""
        chain = []
        parent = self.superset_of(id)
        while parent is not None:
            chain.append(parent)
            parent = self._resources[parent].superset
        return tuple(chain)

    def residual_capacity(self, id: str) -> int:
        """Units of a resource not covered by any of its declared subsets."""
        resource = self.get(id)
        if isinstance(resource, ResourceGroup):
            raise UnknownResourceError(id, context="residual_capacity (groups have no units)")
        covered = sum(self._resources[s].capacity for s in self.subsets_of(id))
        return resource.capacity - covered

    def expand(self, id: str) -> FrozenSet[str]:
        """
        Concrete atomic resources a reference can resolve to.

        - A resource with no subsets expands to itself.
        - A superset expands to its subsets' expansions, plus itself when
          some of its units are not covered by a subset.
        - A group expands to the union of its members' expansions.
        """
        if id in self._groups:
            expanded = set()
            for member in self._groups[id].members:
                expanded |= self.expand(member)
            return frozenset(expanded)

        if id not in self._resources:
            raise UnknownResourceError(id)

        children = self.subsets_of(id)
        if not children:
            return frozenset((id,))

        expanded = set()
        for child in children:
            expanded |= self.expand(child)
        if self.residual_capacity(id) > 0:
            expanded.add(id)
        return frozenset(expanded)

    def shares_units(self, a: str, b: str) -> bool:
        """
        Whether two references can contend for a common physical unit.

        True when their expansions intersect or when a unit of one is a
        superset of a unit of the other (a subset unit also occupies its
        superset). Sibling subsets never contend.
        """
        units_b = self.expand(b)
        for unit in self.expand(a):
            for other in units_b:
                if unit == other:
                    return True
                if unit in self.supersets(other) or other in self.supersets(unit):
                    return True
        return False

    def __len__(self) -> int:
        return len(self._resources) + len(self._groups)

    def __repr__(self) -> str:
        return (f"ResourceGraph(resources={len(self._resources)}, "
                f"groups={len(self._groups)}, frozen={self._frozen})")
