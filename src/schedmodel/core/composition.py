"""
Sequential Composition Engine

Chains descriptors for operations that are cracked into stages which
physically cannot overlap, e.g. a load followed by an ALU op consuming its
result:

    LOAD_ALU_6C = compose("LOAD_ALU_6C", ["LS_4C", "ALU_2C"])

    stage 0  LS_4C   LS  busy [t,   t+1)   latency 4
    stage 1  ALU_2C  ALU busy [t+4, t+5)   latency 2
    result ready at t + 6

Each stage starts once every earlier stage has produced its result, so stage
i is offset by the summed latency of stages 0..i-1. Micro-ops are summed: the
front end pays for every stage even though they serialize.
"""

from typing import List, Sequence

from .descriptors import DescriptorTable, LatencyDescriptor, ResourceDemand
from .errors import DuplicateIdError, EmptyCompositionError, InvalidDescriptorError


MIN_STAGES = 2


def compose(
    table: DescriptorTable,
    id: str,
    stages: Sequence[str],
    repeat: int = 1,
) -> LatencyDescriptor:
    """
    Define a composite descriptor from previously defined stages.

    Args:
        table: Descriptor table holding the stages; receives the composite
        id: Composite operation class name
        stages: Stage descriptor ids in execution order. A stage may itself
            be a composite; its internal offsets are preserved.
        repeat: Number of times the stage list is executed back-to-back

    Returns:
        The registered composite descriptor

    Raises:
        EmptyCompositionError: fewer than 2 stages after repetition
        UnknownDescriptorError: a stage id is not defined
        DuplicateIdError: id is already defined
    """
    if repeat < 1:
        raise InvalidDescriptorError(
            f"Composition '{id}' repeat count must be >= 1, got {repeat}"
        )
    sequence = list(stages) * repeat
    if len(sequence) < MIN_STAGES:
        raise EmptyCompositionError(
            f"Composition '{id}' needs at least {MIN_STAGES} stages, got {len(sequence)}"
        )
    if id in table:
        raise DuplicateIdError("Descriptor", id)

    resolved = [table.lookup(stage_id) for stage_id in sequence]
    return table.add(chain(id, resolved))


def chain(id: str, stages: List[LatencyDescriptor]) -> LatencyDescriptor:
    """Build the composite of already resolved stages (no registration)."""
    demands: List[ResourceDemand] = []
    features = set()
    offset = 0
    stage_index = 0
    micro_ops = 0

    for stage in stages:
        for demand in stage.demands:
            demands.append(demand.shifted(offset, stage_index))
        features |= stage.features
        micro_ops += stage.micro_ops
        offset += stage.latency
        stage_index += stage.stage_count

    return LatencyDescriptor(
        id=id,
        demands=tuple(demands),
        latency=offset,
        micro_ops=micro_ops,
        features=frozenset(features),
        stages=tuple(stage.id for stage in stages),
        flattened_stages=stage_index,
    )
