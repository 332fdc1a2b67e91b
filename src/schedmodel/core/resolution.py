"""
Query/Resolution Interface

The scheduler-facing side of a built model. For an operation class and an
issue cycle the model answers: which resources are busy over which cycles,
and when is the result ready?

    model.resolve("ALU_2C", 10)
    # ReservationPlan(descriptor='ALU_2C', issue_cycle=10,
    #                 intervals=(ReservationInterval('ALU', 10, 11, ...),),
    #                 result_ready_cycle=12, micro_ops=1)

The model holds no time-varying state. Which physical instance is busy
through which cycle is tracked by the scheduler; the plan only lists the
eligible candidates for each required instance.
"""

from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, List, Mapping, Tuple

from .descriptors import DescriptorTable, LatencyDescriptor
from .errors import AmbiguousResourceError, InvalidIssueCycleError, UnsupportedFeatureError
from .parameters import MachineParameters
from .resources import ResourceGraph


@dataclass(frozen=True)
class ReservationInterval:
    """
    One required resource instance over a half-open cycle range.

    Attributes:
        resource: Requested resource or group id
        busy_from: First busy cycle
        busy_until: First cycle the instance is free again
        candidates: Concrete resources the instance may be taken from
        charged: Supersets that also lose one unit, per candidate
        stage: Composition stage the demand belongs to
    """
    resource: str
    busy_from: int
    busy_until: int
    candidates: FrozenSet[str]
    charged: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    stage: int = 0

    @property
    def occupancy(self) -> int:
        return self.busy_until - self.busy_from

    @property
    def concrete(self) -> str:
        """The concrete resource, when exactly one candidate is eligible."""
        if len(self.candidates) != 1:
            raise AmbiguousResourceError(self.resource, self.candidates)
        return next(iter(self.candidates))

    def supersets_for(self, candidate: str) -> Tuple[str, ...]:
        """Supersets charged when the instance is taken from candidate."""
        return dict(self.charged).get(candidate, ())

    def overlaps(self, other: 'ReservationInterval') -> bool:
        return self.busy_from < other.busy_until and other.busy_from < self.busy_until


@dataclass(frozen=True)
class ReservationPlan:
    """Complete answer to one resolve() query."""
    descriptor: str
    issue_cycle: int
    intervals: Tuple[ReservationInterval, ...]
    result_ready_cycle: int
    micro_ops: int

    @property
    def latency(self) -> int:
        return self.result_ready_cycle - self.issue_cycle

    @property
    def busy_until(self) -> int:
        """Cycle after which no resource of the plan is busy."""
        return max((i.busy_until for i in self.intervals), default=self.issue_cycle)

    def demand_by_resource(self) -> Dict[str, int]:
        """Number of required instances per requested resource/group id."""
        return dict(Counter(i.resource for i in self.intervals))

    def stage_intervals(self, stage: int) -> List[ReservationInterval]:
        return [i for i in self.intervals if i.stage == stage]

    def __iter__(self) -> Iterator[ReservationInterval]:
        return iter(self.intervals)

    def __len__(self) -> int:
        return len(self.intervals)


class SchedulingModel:
    """
    Immutable machine model shared read-only by any number of queries.

    Built by SchedModelBuilder.build(); do not construct directly.
    """

    def __init__(
        self,
        name: str,
        graph: ResourceGraph,
        table: DescriptorTable,
        parameters: MachineParameters,
    ):
        self._name = name
        self._graph = graph.freeze()
        self._table = table.freeze()
        self._parameters = parameters
        self._descriptors: Mapping[str, LatencyDescriptor] = MappingProxyType(
            {d.id: d for d in table}
        )
        # Expansions and superset chains are fixed once built
        expansions = {}
        chains = {}
        for ref in list(graph.resources) + list(graph.groups):
            expansions[ref.id] = graph.expand(ref.id)
        for resource in graph.resources:
            chains[resource.id] = graph.supersets(resource.id)
        self._expansions: Mapping[str, FrozenSet[str]] = MappingProxyType(expansions)
        self._chains: Mapping[str, Tuple[str, ...]] = MappingProxyType(chains)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def parameters(self) -> MachineParameters:
        return self._parameters

    @property
    def graph(self) -> ResourceGraph:
        return self._graph

    def descriptors(self) -> List[LatencyDescriptor]:
        return list(self._descriptors.values())

    def __contains__(self, id: str) -> bool:
        return id in self._descriptors

    def lookup(self, id: str) -> LatencyDescriptor:
        """Descriptor for an operation class; raises UnknownDescriptorError."""
        return self._table.lookup(id)

    def expand(self, ref: str) -> FrozenSet[str]:
        """Concrete resources a resource/group id resolves to."""
        if ref in self._expansions:
            return self._expansions[ref]
        return self._graph.expand(ref)

    def total_latency(self, id: str) -> int:
        return self.lookup(id).latency

    def unsupported_features_of(self, id: str) -> FrozenSet[str]:
        descriptor = self.lookup(id)
        return descriptor.features & self._parameters.unsupported_features

    def is_supported(self, id: str) -> bool:
        return not self.unsupported_features_of(id)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, id: str, issue_cycle: int) -> ReservationPlan:
        """
        Reservation plan for issuing operation class id at issue_cycle.

        Each required resource instance yields one interval starting at
        issue_cycle plus its stage offset and lasting its occupancy. The
        result is ready at issue_cycle plus the total latency.

        Raises:
            UnknownDescriptorError: id is not defined
            UnsupportedFeatureError: id is tagged with an unsupported feature
            InvalidIssueCycleError: issue_cycle is negative
        """
        descriptor = self.lookup(id)
        blocked = descriptor.features & self._parameters.unsupported_features
        if blocked:
            raise UnsupportedFeatureError(id, blocked)
        if issue_cycle < 0:
            raise InvalidIssueCycleError(f"Issue cycle must be >= 0, got {issue_cycle}")

        intervals = []
        for demand in descriptor.demands:
            candidates = self._expansions[demand.resource]
            charged = tuple(
                (unit, self._chains[unit]) for unit in sorted(candidates)
                if self._chains[unit]
            )
            busy_from = issue_cycle + demand.offset
            intervals.append(ReservationInterval(
                resource=demand.resource,
                busy_from=busy_from,
                busy_until=busy_from + demand.occupancy,
                candidates=candidates,
                charged=charged,
                stage=demand.stage,
            ))

        return ReservationPlan(
            descriptor=id,
            issue_cycle=issue_cycle,
            intervals=tuple(intervals),
            result_ready_cycle=issue_cycle + descriptor.latency,
            micro_ops=descriptor.micro_ops,
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def log_summary(self, logger=None):
        """Write a sectioned summary of the model to the model logger."""
        from ..logging import get_logger

        log = logger or get_logger()
        params = self._parameters
        composites = sum(1 for d in self._descriptors.values() if d.is_composite)

        log.section(f"Scheduling model: {self._name}")
        log.summary(
            "Machine parameters",
            issue_width=params.issue_width,
            load_latency=params.load_latency,
            mispredict_penalty=params.mispredict_penalty,
            loop_buffer_size=params.loop_buffer_size,
            micro_op_buffer_size=params.micro_op_buffer_size,
            unsupported_features=", ".join(sorted(params.unsupported_features)) or "none",
        )
        log.summary(
            "Definitions",
            resources=len(self._graph.resources),
            groups=len(self._graph.groups),
            descriptors=len(self._descriptors) - composites,
            compositions=composites,
        )

    def __repr__(self) -> str:
        return (f"SchedulingModel(name={self._name!r}, "
                f"descriptors={len(self._descriptors)}, graph={self._graph!r})")
