"""spikegen — model descriptions and code templates for a GPU spiking
network code generator.

Neuron dynamics, postsynaptic integration and synaptic weight-update rules
are described as records: state variables, parameters, derived parameters
computed once per run, and code fragments with placeholders that the
kernel generator resolves.

Subpackages:
    models   Model records, derived parameters, catalogs and the
             standard model library
    codegen  Placeholder grammar and numeric precision of generated code
    utils    Logging

spikegen.config reads run settings and user models from YAML.
"""

__version__ = "0.1.0"
