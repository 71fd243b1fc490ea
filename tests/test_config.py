"""Tests for run configuration and YAML model files."""

import pytest

from spikegen.codegen.precision import Precision
from spikegen.config import (
    GeneratorConfig,
    load_config,
    load_model_definitions,
    record_from_dict,
    yaml_extension,
)
from spikegen.errors import CatalogFrozenError, ModelDefinitionError
from spikegen.models import build
from spikegen.models.records import NeuronModel, WeightUpdateModel


LIF_YAML = """\
neurons:
  - name: lif
    variables: {V: scalar, refractory: int}
    param_names: [tau, Vrest, Vthresh]
    sim_code: "$(V) += ($(Vrest) - $(V)) / $(tau) * DT + $(Isyn) * DT;"
    threshold_condition_code: "$(V) >= $(Vthresh)"
    reset_code: "$(V) = $(Vrest);"
weight_update:
  - name: static_pulse
    variables: [g]
    sim_code: "$(addtoinSyn) = $(g);\\n$(updatelinsyn);"
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "models" / "lif.yaml"
    path.parent.mkdir()
    path.write_text(LIF_YAML)
    return path


@pytest.fixture
def config_file(tmp_path, model_file):
    path = tmp_path / "run.yaml"
    path.write_text("dt: 0.5\n"
                    "precision: double\n"
                    "model_files:\n"
                    "  - models/lif.yaml\n")
    return path


# ---------------------------------------------------------------------------
# GeneratorConfig
# ---------------------------------------------------------------------------

class TestGeneratorConfig:
    def test_defaults(self):
        config = GeneratorConfig()
        assert config.dt == 0.1
        assert config.precision is Precision.FLOAT
        assert config.model_files == []
        assert config.extensions == []

    def test_precision_from_string(self):
        assert GeneratorConfig(precision="DOUBLE").precision is Precision.DOUBLE

    def test_bad_precision(self):
        with pytest.raises(ValueError):
            GeneratorConfig(precision="half")

    @pytest.mark.parametrize("dt", [0, -0.1])
    def test_non_positive_dt(self, dt):
        with pytest.raises(ValueError, match="dt"):
            GeneratorConfig(dt=dt)

    def test_to_dict(self):
        d = GeneratorConfig(dt=1, precision="double").to_dict()
        assert d == {"dt": 1.0, "precision": "double", "model_files": []}


class TestLoadConfig:
    def test_load(self, config_file, model_file):
        config = load_config(config_file)
        assert config.dt == 0.5
        assert config.precision is Precision.DOUBLE
        assert config.model_files == [model_file]

    def test_relative_paths_follow_config(self, config_file, tmp_path,
                                          monkeypatch):
        monkeypatch.chdir(tmp_path.parent)
        config = load_config(config_file)
        assert config.model_files[0].exists()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path).to_dict() == GeneratorConfig().to_dict()

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("dt: 0.1\ntimestep: 0.1\n")
        with pytest.raises(ValueError, match="timestep"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")


# ---------------------------------------------------------------------------
# YAML models
# ---------------------------------------------------------------------------

class TestModelDefinitions:
    def test_records(self, model_file):
        lif, pulse = load_model_definitions(model_file)
        assert isinstance(lif, NeuronModel)
        assert lif.var_names == ("V", "refractory")
        assert lif.var_types == ("scalar", "int")
        assert lif.param_names == ("tau", "Vrest", "Vthresh")
        assert lif.derived_params is None
        assert isinstance(pulse, WeightUpdateModel)
        assert pulse.variables[0].type == "scalar"

    def test_unknown_section(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("synapses: []\n")
        with pytest.raises(ModelDefinitionError, match="synapses"):
            load_model_definitions(path)

    def test_unknown_field(self):
        with pytest.raises(ModelDefinitionError, match="threshold"):
            record_from_dict("neuron", {"name": "x", "threshold": "$(V) > 0"})

    def test_derived_params_cannot_be_declared(self):
        with pytest.raises(ModelDefinitionError):
            record_from_dict("postsynaptic", {
                "name": "x",
                "derived_params": "exp_decay",
                "current_converter_code": "$(inSyn)",
            })

    def test_derived_names_without_strategy(self):
        with pytest.raises(ModelDefinitionError, match="no strategy"):
            record_from_dict("postsynaptic", {
                "name": "x",
                "param_names": ["tau", "E"],
                "derived_param_names": ["expDecay"],
                "current_converter_code": "$(inSyn)",
            })

    def test_malformed_variable_entry(self):
        with pytest.raises(ModelDefinitionError, match="malformed"):
            record_from_dict("neuron", {
                "name": "x",
                "variables": [["V", "scalar", "x"]],
                "threshold_condition_code": "0",
            })

    def test_record_checks_still_apply(self):
        with pytest.raises(ModelDefinitionError, match="threshold"):
            record_from_dict("neuron", {"name": "x", "variables": ["V"]})


class TestYamlExtension:
    def test_build_with_config(self, config_file):
        config = load_config(config_file)
        registry = build(extensions=config.extensions)
        assert "lif" in registry.neurons
        assert registry.neurons.handle_of("lif") == 9
        assert registry.weight_update.handle_of("static_pulse") == 3
        assert registry.frozen

    def test_standard_handles_unchanged(self, model_file):
        plain = build()
        extended = build(extensions=[yaml_extension(model_file)])
        for catalog, other in zip(plain.catalogs, extended.catalogs):
            for handle, record in enumerate(catalog):
                assert other.get(handle).name == record.name

    def test_name_clash(self, model_file):
        extension = yaml_extension(model_file)
        with pytest.raises(ModelDefinitionError, match="lif"):
            build(extensions=[extension, extension])

    def test_frozen_registry(self, model_file):
        registry = build()
        with pytest.raises(CatalogFrozenError):
            yaml_extension(model_file)(registry)

    def test_unresolved_placeholder(self, tmp_path):
        path = tmp_path / "typo.yaml"
        path.write_text("neurons:\n"
                        "  - name: typo\n"
                        "    variables: [V]\n"
                        "    threshold_condition_code: \"$(V) > $(Vthresh)\"\n")
        with pytest.raises(ModelDefinitionError, match="Vthresh"):
            build(extensions=[yaml_extension(path)])
