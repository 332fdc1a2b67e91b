"""
Latency Descriptor Table

Binds operation classes to their static cost model: the resources required
at issue, the result latency, how long each resource stays busy, and how many
front-end dispatch slots (micro-ops) the operation consumes.

Result latency and occupancy are independent. A divider may be busy for 8
cycles and produce its result after 16; a fully pipelined ALU is busy for 1
cycle and produces its result after 2.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import (
    DuplicateIdError,
    InvalidDescriptorError,
    ModelFrozenError,
    NegativeLatencyError,
    UnknownDescriptorError,
    UnknownResourceError,
)
from .resources import ResourceGraph


@dataclass(frozen=True)
class ResourceDemand:
    """
    One required resource instance of a descriptor.

    Attributes:
        resource: Resource or group id
        occupancy: Cycles the instance stays busy after it is claimed
        offset: Cycles after issue at which the instance is claimed
            (non-zero only for later stages of a composition)
        stage: Index of the composition stage the demand belongs to
    """
    resource: str
    occupancy: int = 1
    offset: int = 0
    stage: int = 0

    def shifted(self, offset: int, stage: int) -> 'ResourceDemand':
        return ResourceDemand(
            resource=self.resource,
            occupancy=self.occupancy,
            offset=self.offset + offset,
            stage=self.stage + stage,
        )


@dataclass(frozen=True)
class LatencyDescriptor:
    """
    Static cost model of one operation class.

    Attributes:
        id: Operation class name (e.g., "P9_ALU_2C")
        demands: Ordered resource demands, all claimed for one issue event
        latency: Cycles from issue until the result is available
        micro_ops: Front-end dispatch slots consumed (0 for bookkeeping entries)
        features: Feature tags; a model rejects descriptors whose tags it
            lists as unsupported
        stages: Ids of the stages when this is a composition, else empty
        flattened_stages: Stage indices used by the demands once nested
            compositions are flattened (1 for a simple descriptor)
    """
    id: str
    demands: Tuple[ResourceDemand, ...]
    latency: int
    micro_ops: int = 1
    features: FrozenSet[str] = field(default_factory=frozenset)
    stages: Tuple[str, ...] = ()
    flattened_stages: int = 1

    @property
    def is_composite(self) -> bool:
        return len(self.stages) > 0

    @property
    def resources(self) -> Tuple[str, ...]:
        """Referenced resource/group ids in demand order."""
        return tuple(d.resource for d in self.demands)

    @property
    def max_occupancy(self) -> int:
        return max((d.occupancy for d in self.demands), default=0)

    @property
    def stage_count(self) -> int:
        return max(self.flattened_stages, 1)


class DescriptorTable:
    """
    Single source of truth mapping operation-class ids to descriptors.

    Resource references are checked against a ResourceGraph when each
    descriptor is defined.
    """

    def __init__(self, graph: ResourceGraph):
        self._graph = graph
        self._descriptors: Dict[str, LatencyDescriptor] = {}
        self._frozen = False

    def define_descriptor(
        self,
        id: str,
        resources: Sequence[str],
        latency: int,
        occupancy: Union[int, Sequence[int]] = 1,
        micro_ops: int = 1,
        features: Iterable[str] = (),
    ) -> LatencyDescriptor:
        """
        Define an operation class.

        Args:
            id: Operation class name
            resources: Resource/group ids required simultaneously at issue.
                Listing an id twice requires two instances.
            latency: Result latency in cycles (>= 0)
            occupancy: Busy cycles per resource (>= 1); a single value for
                all resources or one value per resource
            micro_ops: Dispatch slots consumed (>= 0)
            features: Feature tags gating the descriptor

        Raises:
            DuplicateIdError, UnknownResourceError, NegativeLatencyError,
            InvalidDescriptorError
        """
        self._check_mutable()
        if id in self._descriptors:
            raise DuplicateIdError("Descriptor", id)

        resources = list(resources)
        for ref in resources:
            if ref not in self._graph:
                raise UnknownResourceError(ref, context=f"descriptor '{id}'")

        if latency < 0:
            raise NegativeLatencyError(
                f"Descriptor '{id}' result latency must be >= 0, got {latency}"
            )
        if micro_ops < 0:
            raise InvalidDescriptorError(
                f"Descriptor '{id}' micro-op count must be >= 0, got {micro_ops}"
            )

        occupancies = self._expand_occupancy(id, resources, occupancy)
        demands = tuple(
            ResourceDemand(resource=ref, occupancy=occ)
            for ref, occ in zip(resources, occupancies)
        )
        descriptor = LatencyDescriptor(
            id=id,
            demands=demands,
            latency=latency,
            micro_ops=micro_ops,
            features=frozenset(features),
        )
        self._descriptors[id] = descriptor
        return descriptor

    @staticmethod
    def _expand_occupancy(
        id: str,
        resources: List[str],
        occupancy: Union[int, Sequence[int]],
    ) -> List[int]:
        if isinstance(occupancy, int):
            occupancies = [occupancy] * len(resources)
        else:
            occupancies = list(occupancy)
            if len(occupancies) != len(resources):
                raise InvalidDescriptorError(
                    f"Descriptor '{id}' lists {len(occupancies)} occupancies "
                    f"for {len(resources)} resources"
                )
        for occ in occupancies:
            if occ < 1:
                raise InvalidDescriptorError(
                    f"Descriptor '{id}' occupancy must be >= 1, got {occ}"
                )
        return occupancies

    def add(self, descriptor: LatencyDescriptor) -> LatencyDescriptor:
        """Register an already validated descriptor (used for compositions)."""
        self._check_mutable()
        if descriptor.id in self._descriptors:
            raise DuplicateIdError("Descriptor", descriptor.id)
        self._descriptors[descriptor.id] = descriptor
        return descriptor

    def lookup(self, id: str) -> LatencyDescriptor:
        """Return the descriptor for id, or raise UnknownDescriptorError."""
        try:
            return self._descriptors[id]
        except KeyError:
            raise UnknownDescriptorError(id) from None

    def get(self, id: str) -> Optional[LatencyDescriptor]:
        return self._descriptors.get(id)

    def freeze(self) -> 'DescriptorTable':
        self._frozen = True
        return self

    def _check_mutable(self):
        if self._frozen:
            raise ModelFrozenError("Descriptor table is frozen; the model was already built")

    @property
    def descriptors(self) -> List[LatencyDescriptor]:
        return list(self._descriptors.values())

    def __contains__(self, id: str) -> bool:
        return id in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self):
        return iter(self._descriptors.values())
