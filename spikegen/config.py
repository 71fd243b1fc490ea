"""
Configure a generation run, and declare user models in YAML.

A configuration file looks like:

    dt: 0.1
    precision: double
    model_files:
      - models/lif.yaml

and a model file lists records per variant:

    neurons:
      - name: lif
        variables: {V: scalar, refractory: int}
        param_names: [tau, Vrest, Vthresh]
        sim_code: |
          $(V) += ($(Vrest) - $(V)) / $(tau) * DT + $(Isyn) * DT;
        threshold_condition_code: $(V) >= $(Vthresh)
        reset_code: $(V) = $(Vrest);
    postsynaptic: []
    weight_update: []

Keys of a model entry are the field names of the record classes. YAML
cannot express a derived-parameter strategy, so YAML models have none;
register models that need one from a Python extension instead.
"""
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List

import yaml

from spikegen.codegen.precision import Precision
from spikegen.errors import ModelDefinitionError
from spikegen.models.records import RECORD_TYPES
from spikegen.utils import get_logger

LOG = get_logger("config")

# YAML section → record variant
SECTIONS = {
    "neurons": "neuron",
    "postsynaptic": "postsynaptic",
    "weight_update": "weight_update",
}


@dataclass
class GeneratorConfig:
    """Settings of one generation run.

    Attributes
    ----------
    dt : float
        Integration timestep (ms); derived parameters are computed with it.
    precision : Precision
        Type of `scalar` in generated code.
    model_files : list of Path
        YAML files of user models, registered after the standard library.
    """
    dt: float = 0.1
    precision: Precision = Precision.FLOAT
    model_files: List[Path] = field(default_factory=list)

    def __post_init__(self):
        self.dt = float(self.dt)
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        self.precision = Precision.parse(self.precision)
        self.model_files = [Path(p) for p in self.model_files]

    @property
    def extensions(self):
        """Registry extensions for every model file, in order."""
        return [yaml_extension(path) for path in self.model_files]

    def to_dict(self):
        return {
            "dt": self.dt,
            "precision": self.precision.value,
            "model_files": [str(p) for p in self.model_files],
        }


def _read_yaml(path):
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No such file: {path}")
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(path):
    """Load a GeneratorConfig from YAML.

    Relative model file paths are taken relative to the config file.
    """
    path = Path(path)
    data = _read_yaml(path)
    unknown = set(data) - {f.name for f in fields(GeneratorConfig)}
    if unknown:
        raise ValueError(f"Unknown configuration keys {sorted(unknown)} "
                         f"in {path}")
    model_files = [p if Path(p).is_absolute() else path.parent / p
                   for p in data.get("model_files", [])]
    config = GeneratorConfig(
        dt=data.get("dt", 0.1),
        precision=data.get("precision", "float"),
        model_files=model_files,
    )
    LOG.info("Loaded configuration from %s: dt=%s, precision=%s, "
             "%d model files", path, config.dt, config.precision.value,
             len(config.model_files))
    return config


def record_from_dict(variant, entry):
    """Build a model record of `variant` from a YAML mapping."""
    cls = RECORD_TYPES[variant]
    allowed = {f.name for f in fields(cls)} - {"derived_params"}
    unknown = set(entry) - allowed
    if unknown:
        raise ModelDefinitionError(
            f"Unknown keys {sorted(unknown)} for {variant} model "
            f"'{entry.get('name')}'. Available: {sorted(allowed)}"
        )
    kwargs = dict(entry)
    for key in ("variables", "extra_global_params"):
        if isinstance(kwargs.get(key), dict):
            kwargs[key] = list(kwargs[key].items())
    return cls(**kwargs)


def load_model_definitions(path):
    """Read the model records declared in a YAML model file.

    Returns
    -------
    list of ModelRecord
        In file order: neurons, then postsynaptic, then weight update.
    """
    data = _read_yaml(path)
    unknown = set(data) - set(SECTIONS)
    if unknown:
        raise ModelDefinitionError(
            f"Unknown sections {sorted(unknown)} in {path}. "
            f"Available: {list(SECTIONS)}"
        )
    records = []
    for section, variant in SECTIONS.items():
        for entry in data.get(section) or []:
            records.append(record_from_dict(variant, entry))
    return records


def yaml_extension(path):
    """A registry extension registering the models of a YAML file."""
    def extension(registry):
        records = load_model_definitions(path)
        for record in records:
            registry.register(record)
        LOG.info("Registered %d models from %s", len(records), path)

    extension.__name__ = f"yaml_extension({Path(path).name})"
    return extension
