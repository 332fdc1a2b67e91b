"""
Scheduling Model Builder

Construction-time front end for the resource graph, descriptor table,
composition engine and machine parameters. Every cross-reference and
invariant is checked as each definition is added, so a bad definition fails
at build time rather than at the first query. build() returns an immutable
SchedulingModel; the builder accepts no further definitions afterwards.

Example:
    builder = SchedModelBuilder("toy")
    builder.define_resource("ALU", 4)
    builder.define_resource("LS", 2)
    builder.define_descriptor("ALU_2C", ["ALU"], latency=2)
    builder.define_descriptor("LOAD_4C", ["LS"], latency=4)
    builder.compose("LOAD_ALU_6C", ["LOAD_4C", "ALU_2C"])
    builder.set_parameters(MachineParameters(issue_width=4))
    model = builder.build()
"""

from itertools import combinations
from typing import Iterable, Optional, Sequence, Union

from ..logging import ModelLogger, get_logger
from .composition import compose
from .descriptors import DescriptorTable, LatencyDescriptor
from .errors import ModelFrozenError
from .parameters import MachineParameters
from .resolution import SchedulingModel
from .resources import ExecutionResource, ResourceGraph, ResourceGroup


class SchedModelBuilder:
    """Validating builder producing an immutable SchedulingModel."""

    def __init__(self, name: str = "unnamed", logger: Optional[ModelLogger] = None):
        self.name = name
        self._graph = ResourceGraph()
        self._table = DescriptorTable(self._graph)
        self._parameters: Optional[MachineParameters] = None
        self._model: Optional[SchedulingModel] = None
        self._log = logger or get_logger()

    def _check_open(self):
        if self._model is not None:
            raise ModelFrozenError(f"Model '{self.name}' was already built")

    # ------------------------------------------------------------------
    # Resource graph
    # ------------------------------------------------------------------

    def define_resource(
        self,
        id: str,
        capacity: int,
        superset: Optional[str] = None,
        buffer_size: Optional[int] = None,
    ) -> ExecutionResource:
        self._check_open()
        resource = self._graph.define_resource(id, capacity, superset, buffer_size)
        parent = f" superset={superset}" if superset else ""
        self._log.debug(f"[{self.name}] resource {id} capacity={capacity}{parent}")
        return resource

    def define_group(self, id: str, members: Iterable[str]) -> ResourceGroup:
        self._check_open()
        group = self._graph.define_group(id, members)
        self._log.debug(f"[{self.name}] group {id} members={list(group.members)}")

        for a, b in combinations(group.members, 2):
            if self._graph.shares_units(a, b):
                self._log.warning(
                    f"[{self.name}] group {id}: members '{a}' and '{b}' share "
                    f"physical units; choosing either may contend with the other"
                )
        return group

    # ------------------------------------------------------------------
    # Descriptors and compositions
    # ------------------------------------------------------------------

    def define_descriptor(
        self,
        id: str,
        resources: Sequence[str],
        latency: int,
        occupancy: Union[int, Sequence[int]] = 1,
        micro_ops: int = 1,
        features: Iterable[str] = (),
    ) -> LatencyDescriptor:
        self._check_open()
        descriptor = self._table.define_descriptor(
            id, resources, latency, occupancy, micro_ops, features
        )
        self._log.debug(
            f"[{self.name}] descriptor {id} resources={list(descriptor.resources)} "
            f"latency={latency} micro_ops={micro_ops}"
        )
        return descriptor

    def compose(self, id: str, stages: Sequence[str], repeat: int = 1) -> LatencyDescriptor:
        self._check_open()
        descriptor = compose(self._table, id, stages, repeat)
        self._log.debug(
            f"[{self.name}] composition {id} stages={list(descriptor.stages)} "
            f"latency={descriptor.latency}"
        )
        return descriptor

    # ------------------------------------------------------------------
    # Parameters and build
    # ------------------------------------------------------------------

    def set_parameters(self, parameters: Optional[MachineParameters] = None, **kwargs) -> MachineParameters:
        """Set the machine parameter record, from an instance or keyword fields."""
        self._check_open()
        if parameters is None:
            parameters = MachineParameters(**kwargs)
        elif kwargs:
            raise TypeError("Pass either a MachineParameters instance or keyword fields, not both")
        self._parameters = parameters
        return parameters

    @property
    def graph(self) -> ResourceGraph:
        return self._graph

    @property
    def table(self) -> DescriptorTable:
        return self._table

    def build(self) -> SchedulingModel:
        """Freeze the definitions into an immutable SchedulingModel."""
        if self._model is not None:
            return self._model

        parameters = self._parameters or MachineParameters()
        if self._parameters is None:
            self._log.debug(f"[{self.name}] no machine parameters set; using defaults")

        self._model = SchedulingModel(self.name, self._graph, self._table, parameters)
        self._log.debug(
            f"[{self.name}] built: {len(self._graph.resources)} resources, "
            f"{len(self._graph.groups)} groups, {len(self._table)} descriptors"
        )
        return self._model
