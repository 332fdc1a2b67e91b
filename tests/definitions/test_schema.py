"""
Tests for declarative machine definitions.

Tests cover:
- Building from a dictionary
- YAML loading and saving
- Definition errors surfaced from malformed documents
"""

import logging

import pytest
import yaml

from schedmodel.core.errors import (
    CapacityOverflowError,
    DefinitionError,
    EmptyCompositionError,
    UnknownResourceError,
    UnsupportedFeatureError,
)
from schedmodel.definitions import (
    build_model_from_dict,
    load_model_from_yaml,
    model_to_dict,
    save_model_to_yaml,
)
from schedmodel.logging import LogConfig, ModelLogger


TOY_YAML = """
name: toy
parameters:
  issue_width: 4
  load_latency: 4
  mispredict_penalty: 12
  unsupported_features: [mma]
resources:
  - {id: ALU, capacity: 4}
  - {id: ALUE, capacity: 2, superset: ALU}
  - {id: ALUO, capacity: 2, superset: ALU}
  - {id: LS, capacity: 2, buffer_size: 16}
groups:
  - {id: ANY_PIPE, members: [ALU, LS]}
descriptors:
  - {id: ALU_2C, resources: [ALU], latency: 2}
  - {id: DIV_16C_8, resources: [ALUE], latency: 16, occupancy: 8}
  - {id: LOAD_4C, resources: [LS], latency: 4}
  - {id: MIXED, resources: [ALU, LS], latency: 3, occupancy: [1, 2]}
  - {id: DISP_1C, resources: [ANY_PIPE], latency: 0, micro_ops: 0}
  - {id: MMA_8C, resources: [ALU], latency: 8, features: [mma]}
compositions:
  - {id: LOAD_ALU_6C, stages: [LOAD_4C, ALU_2C]}
  - {id: ALU_X3, stages: [ALU_2C], repeat: 3}
"""


@pytest.fixture
def logger():
    return ModelLogger(config=LogConfig(console_level=logging.CRITICAL), register=False)


@pytest.fixture
def toy_dict():
    return yaml.safe_load(TOY_YAML)


class TestBuildFromDict:
    """build_model_from_dict"""

    def test_builds_model(self, toy_dict, logger):
        model = build_model_from_dict(toy_dict, logger=logger)
        assert model.name == "toy"
        assert model.parameters.issue_width == 4
        assert model.graph.get("LS").buffer_size == 16
        assert model.expand("ANY_PIPE") == frozenset({"ALUE", "ALUO", "LS"})

    def test_resolves(self, toy_dict, logger):
        model = build_model_from_dict(toy_dict, logger=logger)
        plan = model.resolve("LOAD_ALU_6C", 0)
        assert [(i.resource, i.busy_from, i.busy_until) for i in plan] == [
            ("LS", 0, 1), ("ALU", 4, 5),
        ]
        assert model.resolve("ALU_X3", 0).result_ready_cycle == 6
        assert [i.occupancy for i in model.resolve("MIXED", 0)] == [1, 2]

    def test_unsupported_feature(self, toy_dict, logger):
        model = build_model_from_dict(toy_dict, logger=logger)
        with pytest.raises(UnsupportedFeatureError):
            model.resolve("MMA_8C", 0)

    def test_empty_document(self, logger):
        model = build_model_from_dict({}, logger=logger)
        assert model.descriptors() == []

    def test_not_a_mapping(self, logger):
        with pytest.raises(DefinitionError):
            build_model_from_dict([1, 2], logger=logger)

    def test_entry_without_id(self, logger):
        with pytest.raises(DefinitionError):
            build_model_from_dict({'resources': [{'capacity': 2}]}, logger=logger)

    def test_section_not_a_list(self, logger):
        with pytest.raises(DefinitionError):
            build_model_from_dict({'resources': {'ALU': 4}}, logger=logger)

    def test_capacity_overflow(self, toy_dict, logger):
        toy_dict['resources'].append({'id': 'ALUX', 'capacity': 1, 'superset': 'ALU'})
        with pytest.raises(CapacityOverflowError):
            build_model_from_dict(toy_dict, logger=logger)

    def test_forward_reference_rejected(self, logger):
        data = {
            'resources': [{'id': 'ALUE', 'capacity': 2, 'superset': 'ALU'},
                          {'id': 'ALU', 'capacity': 4}],
        }
        with pytest.raises(UnknownResourceError):
            build_model_from_dict(data, logger=logger)

    def test_short_composition(self, toy_dict, logger):
        toy_dict['compositions'].append({'id': 'ONE', 'stages': ['ALU_2C']})
        with pytest.raises(EmptyCompositionError):
            build_model_from_dict(toy_dict, logger=logger)

    def test_unknown_section_warns(self, toy_dict):
        log = ModelLogger(register=False)
        toy_dict['bypasses'] = []
        build_model_from_dict(toy_dict, logger=log)
        assert "bypasses" in log.get_content()

    def test_resource_without_capacity(self, logger):
        with pytest.raises(DefinitionError) as excinfo:
            build_model_from_dict({'resources': [{'id': 'ALU'}]}, logger=logger)
        assert "'ALU'" in str(excinfo.value)
        assert "capacity" in str(excinfo.value)

    def test_descriptor_without_latency(self, toy_dict, logger):
        toy_dict['descriptors'].append({'id': 'FPU_OP', 'resources': ['ALU']})
        with pytest.raises(DefinitionError) as excinfo:
            build_model_from_dict(toy_dict, logger=logger)
        assert "'FPU_OP'" in str(excinfo.value)
        assert "latency" in str(excinfo.value)

    def test_mistyped_parameter(self, toy_dict, logger):
        toy_dict['parameters']['issue_width'] = "4"
        with pytest.raises(DefinitionError) as excinfo:
            build_model_from_dict(toy_dict, logger=logger)
        assert "issue_width" in str(excinfo.value)

    def test_parameters_not_a_mapping(self, toy_dict, logger):
        toy_dict['parameters'] = [4, 4]
        with pytest.raises(DefinitionError):
            build_model_from_dict(toy_dict, logger=logger)

    def test_unknown_parameter_warns(self, toy_dict):
        log = ModelLogger(register=False)
        toy_dict['parameters']['issue_widht'] = 8
        model = build_model_from_dict(toy_dict, logger=log)
        assert "issue_widht" in log.get_content()
        assert model.parameters.issue_width == 4


class TestYaml:
    """YAML loading and saving"""

    def test_load(self, tmp_path, logger):
        path = tmp_path / "toy.yaml"
        path.write_text(TOY_YAML)
        model = load_model_from_yaml(path, logger=logger)
        assert model.resolve("ALU_2C", 10).result_ready_cycle == 12

    def test_name_defaults_to_file_stem(self, tmp_path, logger):
        path = tmp_path / "tiny.yaml"
        path.write_text("resources:\n  - {id: ALU, capacity: 1}\n")
        assert load_model_from_yaml(path, logger=logger).name == "tiny"

    def test_save_and_reload(self, tmp_path, toy_dict, logger):
        model = build_model_from_dict(toy_dict, logger=logger)
        path = tmp_path / "out" / "toy.yaml"
        save_model_to_yaml(model, path)

        reloaded = load_model_from_yaml(path, logger=logger)
        for descriptor in model.descriptors():
            if model.is_supported(descriptor.id):
                assert reloaded.resolve(descriptor.id, 3) == model.resolve(descriptor.id, 3)
        assert reloaded.parameters == model.parameters

    def test_model_to_dict(self, toy_dict, logger):
        d = model_to_dict(build_model_from_dict(toy_dict, logger=logger))
        descriptors = {e['id']: e for e in d['descriptors']}
        assert descriptors['DIV_16C_8']['occupancy'] == 8
        assert 'occupancy' not in descriptors['ALU_2C']
        assert descriptors['MIXED']['occupancy'] == [1, 2]
        assert descriptors['DISP_1C']['micro_ops'] == 0
        compositions = {e['id']: e for e in d['compositions']}
        assert compositions['ALU_X3']['stages'] == ['ALU_2C'] * 3
