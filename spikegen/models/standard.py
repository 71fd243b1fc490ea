"""The standard model library.

Each prepare_* function appends the built-in models of one variant to a
catalog, always in the same order, so the handles of the standard models
are fixed:

    neurons         0 rulkov_map          1 poisson
                    2 traub_miles_fast    3 traub_miles_alternative
                    4 traub_miles_safe    5 traub_miles_pstep
                    6 izhikevich          7 izhikevich_v
                    8 spike_source
    postsynaptic    0 exp_decay           1 izhikevich_ps
    weight_update   0 nsynapse            1 ngradsynapse
                    2 learn1synapse

`traub_miles` is an alias of traub_miles_safe.

References:
    Rulkov 2002 — Modeling of spiking-bursting neural behavior using
        two-dimensional map (Phys Rev E 65:041922)
    Traub & Miles 1991 — Neuronal networks of the hippocampus
    Izhikevich 2003 — Simple model of spiking neurons
        (IEEE Trans Neural Netw 14:1569)
    Nowotny et al. 2005 — Self-organization in the olfactory system
        (Biol Cybern 93:436), for the learn1synapse STDP rule
"""

from spikegen.models.derived import EXP_DECAY, PIECEWISE_STDP, RULKOV_MAP
from spikegen.models.records import (
    NeuronModel,
    PostSynapticModel,
    WeightUpdateModel,
)


NEURON_MODELS = (
    "rulkov_map", "poisson",
    "traub_miles_fast", "traub_miles_alternative",
    "traub_miles_safe", "traub_miles_pstep",
    "izhikevich", "izhikevich_v", "spike_source",
)
POSTSYNAPTIC_MODELS = ("exp_decay", "izhikevich_ps")
WEIGHT_UPDATE_MODELS = ("nsynapse", "ngradsynapse", "learn1synapse")


# ---------------------------------------------------------------------------
# Traub & Miles conductance-based neurons
# ---------------------------------------------------------------------------

_TM_VARIABLES = (("V", "scalar"), ("m", "scalar"), ("h", "scalar"),
                 ("n", "scalar"))
_TM_PARAMS = ("gNa", "ENa", "gK", "EK", "gl", "El", "C")

_TM_LOOP = """\
    scalar Imem;
    unsigned int mt;
    scalar mdt= DT/{steps};
    for (mt=0; mt < {count}; mt++) {{
      Imem= -($(m)*$(m)*$(m)*$(h)*$(gNa)*($(V)-($(ENa)))+
              $(n)*$(n)*$(n)*$(n)*$(gK)*($(V)-($(EK)))+
              $(gl)*($(V)-($(El)))-$(Isyn));
{m_rates}
      $(m)+= (_a*(1.0-$(m))-_b*$(m))*mdt;
      _a= 0.128*exp((-48.0-$(V))/18.0);
      _b= 4.0 / (exp((-25.0-$(V))/5.0)+1.0);
      $(h)+= (_a*(1.0-$(h))-_b*$(h))*mdt;
{n_alpha}
      _b= 0.5*exp((-55.0-$(V))/40.0);
      $(n)+= (_a*(1.0-$(n))-_b*$(n))*mdt;
      $(V)+= Imem/$(C)*mdt;
    }}
"""

# alpha_m, beta_m and alpha_n are x/(exp(x/k)-1) forms, singular at
# V = -52, -25 and -50 mV respectively.
_TM_FAST = dict(
    m_rates="""\
      scalar _a= 0.32*(-52.0-$(V))/(exp((-52.0-$(V))/4.0)-1.0);
      scalar _b= 0.28*($(V)+25.0)/(exp(($(V)+25.0)/5.0)-1.0);""",
    n_alpha="""\
      _a= 0.032*(-50.0-$(V))/(exp((-50.0-$(V))/5.0)-1.0);""",
)

_TM_ALTERNATIVE = dict(
    m_rates="""\
      scalar volatile _tmp= abs(exp((-52.0-$(V))/4.0)-1.0);
      scalar _a= 0.32*abs(-52.0-$(V))/(_tmp+SCALAR_MIN);
      _tmp= abs(exp(($(V)+25.0)/5.0)-1.0);
      scalar _b= 0.28*abs($(V)+25.0)/(_tmp+SCALAR_MIN);""",
    n_alpha="""\
      _tmp= abs(exp((-50.0-$(V))/5.0)-1.0);
      _a= 0.032*abs(-50.0-$(V))/(_tmp+SCALAR_MIN);""",
)

# Limits by L'Hospital's rule: 0.32*4, 0.28*5, 0.032*5.
_TM_SAFE = dict(
    m_rates="""\
      scalar _a;
      if ($(V) == -52.0) _a= 1.28;
      else _a= 0.32*(-52.0-$(V))/(exp((-52.0-$(V))/4.0)-1.0);
      scalar _b;
      if ($(V) == -25.0) _b= 1.4;
      else _b= 0.28*($(V)+25.0)/(exp(($(V)+25.0)/5.0)-1.0);""",
    n_alpha="""\
      if ($(V) == -50.0) _a= 0.16;
      else _a= 0.032*(-50.0-$(V))/(exp((-50.0-$(V))/5.0)-1.0);""",
)


def traub_miles_code(rates, steps=25):
    """Sim code of a Traub-Miles neuron.

    Parameters
    ----------
    rates : dict
        Rate-function code for the m gate ("m_rates") and alpha_n
        ("n_alpha"); one of the _TM_* variants.
    steps : int or str
        Inner Euler steps per timestep, or the name of the parameter
        holding that number.
    """
    if isinstance(steps, str):
        return _TM_LOOP.format(steps=f"scalar($({steps}))",
                               count=f"$({steps})", **rates)
    return _TM_LOOP.format(steps=f"{float(steps)}", count=steps, **rates)


def _traub_miles(name, rates, steps=25, extra_params=()):
    return NeuronModel(
        name=name,
        variables=_TM_VARIABLES,
        param_names=_TM_PARAMS + tuple(extra_params),
        sim_code=traub_miles_code(rates, steps),
        threshold_condition_code="$(V) > 0.0",
    )


# ---------------------------------------------------------------------------
# Izhikevich neurons
# ---------------------------------------------------------------------------

# Two half steps of explicit Euler for V, for numerical stability.
IZHIKEVICH_CODE = """\
    if ($(V) >= 30.0){
      $(V)=$(c);
      $(U)+=$(d);
    }
    $(V)+=0.5*(0.04*$(V)*$(V)+5.0*$(V)+140.0-$(U)+$(Isyn))*DT;
    $(V)+=0.5*(0.04*$(V)*$(V)+5.0*$(V)+140.0-$(U)+$(Isyn))*DT;
    $(U)+=$(a)*($(b)*$(V)-$(U))*DT;
"""


def prepare_neuron_models(catalog):
    """Append the standard neuron models to a neuron catalog."""
    catalog.register(NeuronModel(
        name="rulkov_map",
        variables=(("V", "scalar"), ("preV", "scalar")),
        param_names=("Vspike", "alpha", "y", "beta"),
        derived_param_names=("ip0", "ip1", "ip2"),
        derived_params=RULKOV_MAP,
        sim_code="""\
    if ($(V) <= 0) {
      $(preV)= $(V);
      $(V)= $(ip0)/(($(Vspike)) - $(V) - ($(beta))*$(Isyn)) +($(ip1));
    }
    else {
      if (($(V) < $(ip2)) && ($(preV) <= 0)) {
        $(preV)= $(V);
        $(V)= $(ip2);
      }
      else {
        $(preV)= $(V);
        $(V)= -($(Vspike));
      }
    }
""",
        threshold_condition_code="$(V) >= $(ip2)",
    ))

    # Spike probabilities are precomputed per neuron into the `rates` array
    # as uint64 thresholds; `offset` selects the current input pattern.
    catalog.register(NeuronModel(
        name="poisson",
        variables=(("V", "scalar"), ("seed", "uint64_t"),
                   ("spikeTime", "scalar")),
        param_names=("therate", "trefract", "Vspike", "Vrest"),
        extra_global_params=(("rates", "uint64_t *"),
                             ("offset", "unsigned int")),
        sim_code="""\
    uint64_t theRnd;
    if ($(V) > $(Vrest)) {
      $(V)= $(Vrest);
    }
    else {
      if ($(t) - $(spikeTime) > ($(trefract))) {
        MYRAND($(seed),theRnd);
        if (theRnd < *($(rates)+$(offset)+$(id))) {
          $(V)= $(Vspike);
          $(spikeTime)= $(t);
        }
      }
    }
""",
        threshold_condition_code="$(V) >= $(Vspike)",
    ))

    # Unguarded: non-finite at the singular voltages, cheapest.
    catalog.register(_traub_miles("traub_miles_fast", _TM_FAST))
    # SCALAR_MIN added to every denominator.
    catalog.register(_traub_miles("traub_miles_alternative", _TM_ALTERNATIVE))
    # Exact limits substituted at the singular voltages.
    safe = catalog.register(_traub_miles("traub_miles_safe", _TM_SAFE))
    catalog.alias("traub_miles", safe)
    catalog.register(_traub_miles("traub_miles_pstep", _TM_SAFE,
                                  steps="ntimes", extra_params=("ntimes",)))

    catalog.register(NeuronModel(
        name="izhikevich",
        variables=(("V", "scalar"), ("U", "scalar")),
        param_names=("a", "b", "c", "d"),
        sim_code=IZHIKEVICH_CODE,
        threshold_condition_code="$(V) >= 29.99",
    ))

    # a, b, c, d as per-neuron state instead of population parameters
    catalog.register(NeuronModel(
        name="izhikevich_v",
        variables=(("V", "scalar"), ("U", "scalar"), ("a", "scalar"),
                   ("b", "scalar"), ("c", "scalar"), ("d", "scalar")),
        sim_code=IZHIKEVICH_CODE,
        threshold_condition_code="$(V) > 29.99",
    ))

    # Does nothing; spikes are copied in from host code.
    catalog.register(NeuronModel(
        name="spike_source",
        threshold_condition_code="0",
    ))


def prepare_postsynaptic_models(catalog):
    """Append the standard postsynaptic models to a postsynaptic catalog."""
    catalog.register(PostSynapticModel(
        name="exp_decay",
        param_names=("tau", "E"),
        derived_param_names=("expDecay",),
        derived_params=EXP_DECAY,
        decay_code="$(inSyn)*=$(expDecay);\n",
        current_converter_code="$(inSyn)*($(E)-$(V))",
    ))

    # Paired with Izhikevich neurons: input is used once, then cleared.
    catalog.register(PostSynapticModel(
        name="izhikevich_ps",
        current_converter_code="$(inSyn); $(inSyn)= 0",
    ))


# Piecewise-linear STDP window on a shadow weight gRaw, with the
# effective weight g a sigmoid of gRaw.
_LEARN1_UPDATE = """\
  scalar dg = 0;
  if (dt > $(lim0))
      dg = -($(off0)) ;
  else if (dt > 0)
      dg = $(slope0) * dt + ($(off1));
  else if (dt > $(lim1))
      dg = $(slope1) * dt + ($(off1));
  else dg = -($(off2)) ;
  $(gRaw) += dg;
  $(g)=$(gMax)/2.0 *(tanh($(gSlope)*($(gRaw) - ($(gMid))))+1);
"""


def prepare_weight_update_models(catalog):
    """Append the standard weight-update models to a weight-update catalog."""
    # Pulse coupling: a presynaptic spike adds g.
    catalog.register(WeightUpdateModel(
        name="nsynapse",
        variables=(("g", "scalar"),),
        sim_code="""\
  $(addtoinSyn) = $(g);
  $(updatelinsyn);
""",
    ))

    # Graded transmission while V_pre is above Epre, no spike needed.
    catalog.register(WeightUpdateModel(
        name="ngradsynapse",
        variables=(("g", "scalar"),),
        param_names=("Epre", "Vslope"),
        event_code="""\
    $(addtoinSyn) = $(g) * tanh(($(V_pre) - $(Epre)) / $(Vslope))* DT;
    if ($(addtoinSyn) < 0) $(addtoinSyn) = 0.0;
    $(updatelinsyn);
""",
        event_threshold_code="$(V_pre) > $(Epre)",
    ))

    catalog.register(WeightUpdateModel(
        name="learn1synapse",
        variables=(("g", "scalar"), ("gRaw", "scalar")),
        param_names=("tLrn", "tChng", "tDecay", "tPunish10", "tPunish01",
                     "gMax", "gMid", "gSlope", "tauShift", "gSyn0"),
        derived_param_names=("lim0", "lim1", "slope0", "slope1",
                             "off0", "off1", "off2"),
        derived_params=PIECEWISE_STDP,
        sim_code=("""\
  $(addtoinSyn) = $(g);
  $(updatelinsyn);
  scalar dt = $(sT_post) - $(t) - ($(tauShift));
""" + _LEARN1_UPDATE),
        learn_post_code=("""\
  scalar dt = $(t) - ($(sT_pre)) - ($(tauShift));
""" + _LEARN1_UPDATE),
        needs_pre_spike_time=True,
        needs_post_spike_time=True,
    ))
