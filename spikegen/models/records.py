"""Model records: the description of a kind of simulatable unit.

Three variants share a common core:
  - NeuronModel: per-neuron state update, spike condition and reset
  - PostSynapticModel: decay of accumulated synaptic input, and how it
    becomes a current injected into the neuron
  - WeightUpdateModel: what a presynaptic spike (or graded event) does to
    the postsynaptic input, and any plasticity rule

All are frozen dataclasses. Lists passed at construction are stored as
tuples, so a record cannot change once built.
"""

from dataclasses import dataclass, field
from typing import ClassVar, NamedTuple, Optional

from spikegen.codegen.precision import Precision, type_size
from spikegen.errors import ModelDefinitionError


class Variable(NamedTuple):
    """Per-instance state variable: a name and its C type."""
    name: str
    type: str = "scalar"


class ExtraGlobalParam(NamedTuple):
    """Kernel parameter set once per run, shared by the whole population."""
    name: str
    type: str


class CodeFragment(NamedTuple):
    """A code template stored in one of the record's named slots."""
    slot: str
    template: str


def variables_from_lists(names, types):
    """Pair up parallel name and type lists.

    Raises
    ------
    ModelDefinitionError
        If the lists differ in length.
    """
    names, types = list(names), list(types)
    if len(names) != len(types):
        raise ModelDefinitionError(
            f"{len(names)} variable names but {len(types)} types: "
            f"{names} / {types}"
        )
    return tuple(Variable(n, t) for n, t in zip(names, types))


def _pairs(entries, kind, owner):
    shortest = len(kind._fields) - len(kind._field_defaults)
    pairs = []
    for entry in entries:
        if isinstance(entry, str):
            entry = (entry,)
        if (not isinstance(entry, (tuple, list))
                or not shortest <= len(entry) <= len(kind._fields)):
            raise ModelDefinitionError(
                f"Model '{owner}': malformed {kind.__name__} {entry!r}, "
                f"expected {kind._fields}"
            )
        pairs.append(kind(*entry))
    return tuple(pairs)


@dataclass(frozen=True)
class ModelRecord:
    """Fields and checks common to every model variant.

    Parameters
    ----------
    name : str
        Name the model is registered under.
    variables : sequence of Variable or (name, type)
        Per-instance state, in declaration order. A bare string is a
        `scalar` variable.
    param_names : sequence of str
        Raw parameters. Their order is the positional contract with
        `derived_params`.
    derived_param_names : sequence of str
        Names of the derived parameters; position is the index passed to
        the strategy.
    derived_params : DerivedParameters, optional
        Strategy computing the derived parameters once per run.
    """
    variant: ClassVar[str] = ""
    _slots: ClassVar[tuple] = ()

    name: str
    variables: tuple = ()
    param_names: tuple = ()
    derived_param_names: tuple = ()
    derived_params: Optional[object] = None

    def __post_init__(self):
        object.__setattr__(self, "variables", _pairs(self.variables, Variable,
                                                  self.name))
        object.__setattr__(self, "param_names", tuple(self.param_names))
        object.__setattr__(self, "derived_param_names",
                           tuple(self.derived_param_names))
        self._check_derived()

    def _check_derived(self):
        strategy = self.derived_params
        if strategy is None:
            if self.derived_param_names:
                raise ModelDefinitionError(
                    f"Model '{self.name}' declares derived parameters "
                    f"{list(self.derived_param_names)} but no strategy"
                )
            return
        if tuple(strategy.names) != self.derived_param_names:
            raise ModelDefinitionError(
                f"Model '{self.name}': derived parameters "
                f"{list(self.derived_param_names)} do not match the "
                f"strategy's {list(strategy.names)}"
            )
        if len(self.param_names) != strategy.n_params:
            raise ModelDefinitionError(
                f"Model '{self.name}' has {len(self.param_names)} parameters "
                f"but its strategy expects {strategy.n_params}"
            )

    def _check_names(self):
        seen = set()
        for name in self.names:
            if name in seen:
                raise ModelDefinitionError(
                    f"Model '{self.name}' declares '{name}' more than once"
                )
            seen.add(name)

    @property
    def var_names(self):
        return tuple(v.name for v in self.variables)

    @property
    def var_types(self):
        return tuple(v.type for v in self.variables)

    @property
    def names(self):
        """Every name the record owns, in declaration order."""
        return self.var_names + self.param_names + self.derived_param_names

    @property
    def fragments(self):
        """CodeFragments for the non-empty code slots."""
        return tuple(CodeFragment(slot, getattr(self, attr))
                     for slot, attr in self._slots if getattr(self, attr))

    def fragment(self, slot):
        """The template in a slot, or "" if the slot is empty."""
        for name, attr in self._slots:
            if name == slot:
                return getattr(self, attr)
        raise KeyError(f"Unknown code slot '{slot}' for {self.variant} "
                       f"models. Available: {[s for s, _ in self._slots]}")

    def derived_param_index(self, name):
        """Index of a derived parameter, as passed to the strategy."""
        try:
            return self.derived_param_names.index(name)
        except ValueError:
            raise KeyError(f"Model '{self.name}' has no derived parameter "
                           f"'{name}'") from None

    def state_bytes(self, precision=Precision.FLOAT):
        """Bytes of per-instance state, for memory planning."""
        return sum(type_size(v.type, precision) for v in self.variables)

    def to_dict(self):
        return {
            "name": self.name,
            "variant": self.variant,
            "variables": [f"{v.name}:{v.type}" for v in self.variables],
            "params": list(self.param_names),
            "derived_params": list(self.derived_param_names),
            "derived_kind": (self.derived_params.kind.value
                             if self.derived_params is not None else None),
            "slots": [f.slot for f in self.fragments],
        }


@dataclass(frozen=True)
class NeuronModel(ModelRecord):
    """Neuron dynamics.

    sim_code updates the state once per timestep; threshold_condition_code
    is a boolean expression that is true when the neuron spikes;
    reset_code, if any, runs after a spike. extra_global_params are
    per-run kernel arguments, as (name, type) pairs.
    """
    variant: ClassVar[str] = "neuron"
    _slots: ClassVar[tuple] = (
        ("sim", "sim_code"),
        ("threshold", "threshold_condition_code"),
        ("reset", "reset_code"),
    )

    sim_code: str = ""
    threshold_condition_code: str = ""
    reset_code: str = ""
    extra_global_params: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "extra_global_params",
                           _pairs(self.extra_global_params,
                                  ExtraGlobalParam, self.name))
        super().__post_init__()
        if not self.threshold_condition_code.strip():
            raise ModelDefinitionError(
                f"Neuron model '{self.name}' has no threshold condition"
            )
        self._check_names()

    @property
    def names(self):
        return super().names + tuple(p.name for p in self.extra_global_params)

    def to_dict(self):
        d = super().to_dict()
        d["extra_global_params"] = [f"{p.name}:{p.type}"
                                    for p in self.extra_global_params]
        return d


@dataclass(frozen=True)
class PostSynapticModel(ModelRecord):
    """Postsynaptic integration.

    decay_code is applied every step to $(inSyn); current_converter_code
    maps $(inSyn) and the neuron state to the current term added to Isyn.
    """
    variant: ClassVar[str] = "postsynaptic"
    _slots: ClassVar[tuple] = (
        ("decay", "decay_code"),
        ("toCurrent", "current_converter_code"),
    )

    decay_code: str = ""
    current_converter_code: str = ""

    def __post_init__(self):
        super().__post_init__()
        if not self.current_converter_code.strip():
            raise ModelDefinitionError(
                f"Postsynaptic model '{self.name}' has no current converter"
            )
        self._check_names()


@dataclass(frozen=True)
class WeightUpdateModel(ModelRecord):
    """Synaptic weight update and plasticity.

    sim_code runs on a presynaptic spike. event_code runs whenever
    event_threshold_code holds, for graded (spike-less) transmission.
    learn_post_code runs on a postsynaptic spike. The two flags tell the
    generator to keep the last spike time of the pre/postsynaptic neurons,
    which the code reaches as $(sT_pre) and $(sT_post).
    """
    variant: ClassVar[str] = "weight_update"
    _slots: ClassVar[tuple] = (
        ("sim", "sim_code"),
        ("event", "event_code"),
        ("eventThreshold", "event_threshold_code"),
        ("learnPost", "learn_post_code"),
    )

    sim_code: str = ""
    event_code: str = ""
    event_threshold_code: str = ""
    learn_post_code: str = ""
    needs_pre_spike_time: bool = False
    needs_post_spike_time: bool = False

    def __post_init__(self):
        super().__post_init__()
        if bool(self.event_code.strip()) != bool(self.event_threshold_code.strip()):
            raise ModelDefinitionError(
                f"Weight update model '{self.name}': event code and event "
                f"threshold must be given together"
            )
        self._check_names()

    def to_dict(self):
        d = super().to_dict()
        d["needs_pre_spike_time"] = self.needs_pre_spike_time
        d["needs_post_spike_time"] = self.needs_post_spike_time
        return d


RECORD_TYPES = {
    cls.variant: cls
    for cls in (NeuronModel, PostSynapticModel, WeightUpdateModel)
}
