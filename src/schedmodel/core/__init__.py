"""
Core Scheduling Model

Resource graph, latency descriptor table, sequential composition, machine
parameters and the query/resolution interface of a superscalar pipeline
model.
"""

from .errors import (
    ModelError,
    DefinitionError,
    DuplicateIdError,
    InvalidCapacityError,
    CapacityOverflowError,
    UnknownResourceError,
    NegativeLatencyError,
    EmptyCompositionError,
    InvalidGroupError,
    InvalidDescriptorError,
    InvalidParameterError,
    ModelFrozenError,
    QueryError,
    UnknownDescriptorError,
    UnsupportedFeatureError,
    InvalidIssueCycleError,
    AmbiguousResourceError,
)

from .resources import (
    ExecutionResource,
    ResourceGroup,
    ResourceGraph,
)

from .descriptors import (
    ResourceDemand,
    LatencyDescriptor,
    DescriptorTable,
)

from .composition import compose, chain
from .parameters import MachineParameters

from .resolution import (
    ReservationInterval,
    ReservationPlan,
    SchedulingModel,
)

from .builder import SchedModelBuilder

__all__ = [
    # Errors
    'ModelError',
    'DefinitionError',
    'DuplicateIdError',
    'InvalidCapacityError',
    'CapacityOverflowError',
    'UnknownResourceError',
    'NegativeLatencyError',
    'EmptyCompositionError',
    'InvalidGroupError',
    'InvalidDescriptorError',
    'InvalidParameterError',
    'ModelFrozenError',
    'QueryError',
    'UnknownDescriptorError',
    'UnsupportedFeatureError',
    'InvalidIssueCycleError',
    'AmbiguousResourceError',
    # Resource graph
    'ExecutionResource',
    'ResourceGroup',
    'ResourceGraph',
    # Descriptors
    'ResourceDemand',
    'LatencyDescriptor',
    'DescriptorTable',
    'compose',
    'chain',
    # Parameters
    'MachineParameters',
    # Resolution
    'ReservationInterval',
    'ReservationPlan',
    'SchedulingModel',
    'SchedModelBuilder',
]
