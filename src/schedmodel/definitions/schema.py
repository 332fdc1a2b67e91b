"""
Machine Definition Schema

Declarative form of a machine model. A definition document lists resources,
groups, descriptors and compositions in dependency order, plus one parameter
record. Loading a document replays it through SchedModelBuilder, so every
builder check applies.

Example (YAML):

    name: toy
    parameters:
      issue_width: 4
      load_latency: 4
      unsupported_features: [mma]
    resources:
      - {id: ALU, capacity: 4}
      - {id: ALUE, capacity: 2, superset: ALU}
      - {id: LS, capacity: 2, buffer_size: 16}
    groups:
      - {id: ANY_PIPE, members: [ALU, LS]}
    descriptors:
      - {id: ALU_2C, resources: [ALU], latency: 2}
      - {id: DIV_16C, resources: [ALU], latency: 16, occupancy: 8}
      - {id: LOAD_4C, resources: [LS], latency: 4}
    compositions:
      - {id: LOAD_ALU_6C, stages: [LOAD_4C, ALU_2C]}
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..core.builder import SchedModelBuilder
from ..core.errors import DefinitionError
from ..core.parameters import MachineParameters
from ..core.resolution import SchedulingModel
from ..logging import ModelLogger, get_logger


SECTIONS = ('parameters', 'resources', 'groups', 'descriptors', 'compositions')


def _entries(data: Dict[str, Any], section: str) -> List[Dict[str, Any]]:
    entries = data.get(section) or []
    if not isinstance(entries, list):
        raise DefinitionError(f"Section '{section}' must be a list, got {type(entries).__name__}")
    for entry in entries:
        if not isinstance(entry, dict) or 'id' not in entry:
            raise DefinitionError(f"Every entry of '{section}' needs an 'id': {entry!r}")
    return entries


def _required(entry: Dict[str, Any], key: str, kind: str) -> Any:
    if key not in entry:
        raise DefinitionError(f"{kind} '{entry['id']}' has no '{key}'")
    return entry[key]


def build_model_from_dict(
    data: Dict[str, Any],
    logger: Optional[ModelLogger] = None,
) -> SchedulingModel:
    """
    Build a SchedulingModel from a definition dictionary.

    Raises:
        DefinitionError: the document is malformed or any definition is invalid
    """
    if not isinstance(data, dict):
        raise DefinitionError(f"Machine definition must be a mapping, got {type(data).__name__}")

    log = logger or get_logger()
    unknown = set(data) - set(SECTIONS) - {'name', 'description'}
    if unknown:
        log.warning(f"Ignoring unknown definition sections: {sorted(unknown)}")

    builder = SchedModelBuilder(data.get('name', 'unnamed'), logger=log)

    try:
        for entry in _entries(data, 'resources'):
            builder.define_resource(
                entry['id'],
                _required(entry, 'capacity', 'Resource'),
                superset=entry.get('superset'),
                buffer_size=entry.get('buffer_size'),
            )
        for entry in _entries(data, 'groups'):
            builder.define_group(entry['id'], entry.get('members') or [])
        for entry in _entries(data, 'descriptors'):
            builder.define_descriptor(
                entry['id'],
                entry.get('resources') or [],
                _required(entry, 'latency', 'Descriptor'),
                occupancy=entry.get('occupancy', 1),
                micro_ops=entry.get('micro_ops', 1),
                features=entry.get('features') or (),
            )
        for entry in _entries(data, 'compositions'):
            builder.compose(entry['id'], entry.get('stages') or [], repeat=entry.get('repeat', 1))

        parameters = data.get('parameters')
        if parameters is not None:
            if not isinstance(parameters, dict):
                raise DefinitionError("Section 'parameters' must be a mapping")
            unknown = set(parameters) - set(MachineParameters.__dataclass_fields__)
            if unknown:
                log.warning(f"Ignoring unknown machine parameters: {sorted(unknown)}")
            builder.set_parameters(MachineParameters.from_dict(parameters))
    except TypeError as e:
        raise DefinitionError(f"Malformed definition in '{builder.name}': {e}") from e

    return builder.build()


def model_to_dict(model: SchedulingModel) -> Dict[str, Any]:
    """Convert a built model back to its definition dictionary."""
    resources = []
    for resource in model.graph.resources:
        entry: Dict[str, Any] = {'id': resource.id, 'capacity': resource.capacity}
        if resource.superset is not None:
            entry['superset'] = resource.superset
        if resource.buffer_size is not None:
            entry['buffer_size'] = resource.buffer_size
        resources.append(entry)

    groups = [
        {'id': group.id, 'members': list(group.members)}
        for group in model.graph.groups
    ]

    descriptors = []
    compositions = []
    for descriptor in model.descriptors():
        if descriptor.is_composite:
            compositions.append({'id': descriptor.id, 'stages': list(descriptor.stages)})
            continue
        occupancies = [d.occupancy for d in descriptor.demands]
        entry = {
            'id': descriptor.id,
            'resources': list(descriptor.resources),
            'latency': descriptor.latency,
        }
        if occupancies and len(set(occupancies)) == 1:
            if occupancies[0] != 1:
                entry['occupancy'] = occupancies[0]
        elif occupancies:
            entry['occupancy'] = occupancies
        if descriptor.micro_ops != 1:
            entry['micro_ops'] = descriptor.micro_ops
        if descriptor.features:
            entry['features'] = sorted(descriptor.features)
        descriptors.append(entry)

    return {
        'name': model.name,
        'parameters': model.parameters.to_dict(),
        'resources': resources,
        'groups': groups,
        'descriptors': descriptors,
        'compositions': compositions,
    }


def load_model_from_yaml(
    path: Union[str, Path],
    logger: Optional[ModelLogger] = None,
) -> SchedulingModel:
    """Load and build a machine model from a YAML definition file"""
    path = Path(path)
    with open(path, 'r') as f:
        data = yaml.safe_load(f)
    if isinstance(data, dict) and 'name' not in data:
        data['name'] = path.stem
    return build_model_from_dict(data, logger=logger)


def save_model_to_yaml(model: SchedulingModel, path: Union[str, Path]) -> None:
    """Save a machine model to a YAML definition file"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.dump(model_to_dict(model), f, default_flow_style=False, sort_keys=False)
