"""Derived parameters: constants folded from raw parameters and dt.

Kernel code should not redo timestep-dependent algebra on every step.
A model that needs such a constant declares it as a derived parameter,
and its DerivedParameters strategy computes the value once per run from
the raw parameters (in the record's parameter order) and the timestep.

The strategy set is closed: each built-in model family has a DerivedKind,
and anything else is DerivedKind.CUSTOM with user-supplied formulas.
"""

import numbers
from dataclasses import dataclass
from enum import Enum

import numpy as np

from spikegen.errors import DerivedParameterIndexError, ModelDefinitionError


class DerivedKind(Enum):
    RULKOV_MAP = "rulkov_map"
    EXP_DECAY = "exp_decay"
    PIECEWISE_STDP = "piecewise_stdp"
    CUSTOM = "custom"


# ---------------------------------------------------------------------------
# Built-in formulas: f(pars, dt) -> float
# ---------------------------------------------------------------------------

def _rulkov_ip0(pars, dt):
    return pars[0] * pars[0] * pars[1]


def _rulkov_ip1(pars, dt):
    return pars[0] * pars[2]


def _rulkov_ip2(pars, dt):
    return pars[0] * pars[1] + pars[0] * pars[2]


def _exp_decay(pars, dt):
    return float(np.exp(-dt / pars[0]))


# Piecewise-linear STDP window. Parameter positions:
# 0 tLrn, 1 tChng, 2 tDecay, 3 tPunish10, 4 tPunish01, 5 gMax, ...

def _stdp_lim0(pars, dt):
    return (1 / pars[4] + 1 / pars[1]) * pars[0] / (2 / pars[1])


def _stdp_lim1(pars, dt):
    return -((1 / pars[3] + 1 / pars[1]) * pars[0] / (2 / pars[1]))


def _stdp_slope0(pars, dt):
    return -2 * pars[5] / (pars[1] * pars[0])


def _stdp_slope1(pars, dt):
    return -1 * _stdp_slope0(pars, dt)


def _stdp_off0(pars, dt):
    return pars[5] / pars[4]


def _stdp_off1(pars, dt):
    return pars[5] / pars[1]


def _stdp_off2(pars, dt):
    return pars[5] / pars[3]


@dataclass(frozen=True)
class DerivedParameters:
    """Strategy computing a model's derived parameters.

    Parameters
    ----------
    kind : DerivedKind
        Which formula family this is.
    names : tuple of str
        Derived parameter names; position i is computed by formulas[i].
    formulas : tuple of callable
        f(pars, dt) -> float, one per name.
    n_params : int
        Number of raw parameters the owning model must declare.
    """
    kind: DerivedKind
    names: tuple
    formulas: tuple
    n_params: int

    def __post_init__(self):
        if len(self.names) != len(self.formulas):
            raise ModelDefinitionError(
                f"{len(self.names)} derived parameter names but "
                f"{len(self.formulas)} formulas"
            )

    @classmethod
    def custom(cls, formulas, n_params):
        """Build a user strategy from an ordered {name: f(pars, dt)} mapping."""
        return cls(
            kind=DerivedKind.CUSTOM,
            names=tuple(formulas.keys()),
            formulas=tuple(formulas.values()),
            n_params=n_params,
        )

    def __len__(self):
        return len(self.names)

    def compute(self, index, parameters, dt=1.0):
        """Compute the derived parameter at `index`.

        Parameters
        ----------
        index : int
            Position of the derived parameter in `names`.
        parameters : sequence of float
            Raw parameter values in the owning model's order.
        dt : float
            Integration timestep (ms).

        Raises
        ------
        DerivedParameterIndexError
            If index is outside [0, len(names)).
        """
        if (isinstance(index, bool) or not isinstance(index, numbers.Integral)
                or not 0 <= index < len(self.formulas)):
            raise DerivedParameterIndexError(
                f"Derived parameter index {index!r} out of range for "
                f"{self.kind.value} strategy with {len(self.names)} "
                f"parameters {list(self.names)}"
            )
        return self.formulas[index](parameters, dt)

    def compute_all(self, parameters, dt=1.0):
        """All derived values, in index order."""
        return np.array([self.compute(i, parameters, dt)
                         for i in range(len(self.formulas))], dtype=float)


RULKOV_MAP = DerivedParameters(
    kind=DerivedKind.RULKOV_MAP,
    names=("ip0", "ip1", "ip2"),
    formulas=(_rulkov_ip0, _rulkov_ip1, _rulkov_ip2),
    n_params=4,
)

EXP_DECAY = DerivedParameters(
    kind=DerivedKind.EXP_DECAY,
    names=("expDecay",),
    formulas=(_exp_decay,),
    n_params=2,
)

PIECEWISE_STDP = DerivedParameters(
    kind=DerivedKind.PIECEWISE_STDP,
    names=("lim0", "lim1", "slope0", "slope1", "off0", "off1", "off2"),
    formulas=(_stdp_lim0, _stdp_lim1, _stdp_slope0, _stdp_slope1,
              _stdp_off0, _stdp_off1, _stdp_off2),
    n_params=10,
)


def prepare_derived(record, parameters, dt):
    """Compute a model's derived parameters for one run.

    Parameters
    ----------
    record : ModelRecord
    parameters : sequence of float or mapping
        Raw parameter values, positionally or by name.
    dt : float
        Integration timestep (ms).

    Returns
    -------
    dict
        derived parameter name -> value, in index order.
    """
    if hasattr(parameters, "keys"):
        missing = [n for n in record.param_names if n not in parameters]
        if missing:
            raise ModelDefinitionError(
                f"Model '{record.name}' is missing parameters {missing}"
            )
        parameters = [parameters[n] for n in record.param_names]
    parameters = [float(p) for p in parameters]
    if len(parameters) != len(record.param_names):
        raise ModelDefinitionError(
            f"Model '{record.name}' takes {len(record.param_names)} "
            f"parameters {list(record.param_names)}, got {len(parameters)}"
        )
    if record.derived_params is None:
        return {}
    values = record.derived_params.compute_all(parameters, dt)
    return dict(zip(record.derived_param_names, values.tolist()))
