"""
schedmodel: static resource/latency model of a superscalar out-of-order
pipeline, for consumption by an instruction scheduler.

Usage:
    from schedmodel import SchedModelBuilder
    from schedmodel.models import power9_sched_model

    model = power9_sched_model()
    plan = model.resolve("P9_LoadAndALUOp_6C", issue_cycle=0)
    plan.result_ready_cycle   # 6
"""

from .core import (
    SchedModelBuilder,
    SchedulingModel,
    MachineParameters,
    ReservationPlan,
    ReservationInterval,
    LatencyDescriptor,
    ExecutionResource,
    ResourceGroup,
    ModelError,
    DefinitionError,
    QueryError,
)

__version__ = "0.1.0"

__all__ = [
    'SchedModelBuilder',
    'SchedulingModel',
    'MachineParameters',
    'ReservationPlan',
    'ReservationInterval',
    'LatencyDescriptor',
    'ExecutionResource',
    'ResourceGroup',
    'ModelError',
    'DefinitionError',
    'QueryError',
]
