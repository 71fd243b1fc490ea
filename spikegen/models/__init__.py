"""models — Registry of neuron, postsynaptic and weight-update models.

Provides the record types, the derived-parameter strategies, append-only
catalogs with stable handles, and build() which assembles the standard
model library plus user extensions into a frozen registry.

References:
    Nowotny 2011 — Flexible neuronal network simulation framework using
        code generation for NVidia(R) CUDA (BMC Neurosci 12:P239)
"""

from .records import (
    Variable,
    ExtraGlobalParam,
    CodeFragment,
    ModelRecord,
    NeuronModel,
    PostSynapticModel,
    WeightUpdateModel,
    variables_from_lists,
)
from .derived import (
    DerivedKind,
    DerivedParameters,
    RULKOV_MAP,
    EXP_DECAY,
    PIECEWISE_STDP,
    prepare_derived,
)
from .catalog import ModelCatalog
from .bootstrap import (
    ModelRegistry,
    build,
    populate_standard_models,
)
