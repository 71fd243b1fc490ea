"""Build the model registry handed to the code generator.

    registry = build(extensions=[add_my_models])
    neuron = registry.neurons.get(registry.neurons.handle_of("izhikevich"))

build() creates one catalog per variant, fills each with the standard
library, runs the user extensions in order, and freezes the catalogs.
An extension is any callable taking the (still open) registry, the same
shape as the standard prepare_* functions.
"""

from dataclasses import dataclass, field

import pandas as pd

from spikegen.errors import UnknownHandleError
from spikegen.models.catalog import ModelCatalog
from spikegen.models.standard import (
    prepare_neuron_models,
    prepare_postsynaptic_models,
    prepare_weight_update_models,
)
from spikegen.utils import get_logger

LOG = get_logger("models.bootstrap")


@dataclass
class ModelRegistry:
    """The three model catalogs of one generation run."""
    neurons: ModelCatalog = field(
        default_factory=lambda: ModelCatalog("neuron"))
    postsynaptic: ModelCatalog = field(
        default_factory=lambda: ModelCatalog("postsynaptic"))
    weight_update: ModelCatalog = field(
        default_factory=lambda: ModelCatalog("weight_update"))

    @property
    def catalogs(self):
        return (self.neurons, self.postsynaptic, self.weight_update)

    def catalog(self, variant):
        """The catalog holding records of `variant`."""
        for catalog in self.catalogs:
            if catalog.variant == variant:
                return catalog
        raise UnknownHandleError(
            f"Unknown model variant '{variant}'. "
            f"Available: {[c.variant for c in self.catalogs]}"
        )

    def register(self, record):
        """Register a record in the catalog of its variant."""
        return self.catalog(record.variant).register(record)

    def freeze(self):
        for catalog in self.catalogs:
            catalog.freeze()
        return self

    @property
    def frozen(self):
        return all(catalog.frozen for catalog in self.catalogs)

    def summary(self):
        """All catalogs' summaries stacked, indexed by (variant, handle)."""
        frames = [catalog.summary().reset_index() for catalog in self.catalogs]
        return pd.concat(frames, ignore_index=True).set_index(
            ["variant", "handle"])


def populate_standard_models(registry):
    """Append the standard library to each catalog of an open registry."""
    prepare_neuron_models(registry.neurons)
    prepare_postsynaptic_models(registry.postsynaptic)
    prepare_weight_update_models(registry.weight_update)


def build(extensions=(), freeze=True):
    """Construct the registry for a generation run.

    Parameters
    ----------
    extensions : iterable of callable
        Each is called as fn(registry) after the standard library is in
        place, in the given order, and may register further models.
    freeze : bool
        Freeze the catalogs once the extensions have run. Leave False only
        to keep adding models by hand; freeze before handing the registry
        to the generator.

    Returns
    -------
    ModelRegistry
    """
    registry = ModelRegistry()
    populate_standard_models(registry)
    n_standard = [len(c) for c in registry.catalogs]

    for extension in extensions:
        extension(registry)

    added = [len(c) - n for c, n in zip(registry.catalogs, n_standard)]
    LOG.info("Model registry: %d neuron, %d postsynaptic, %d weight update "
             "models (%d added by extensions)",
             len(registry.neurons), len(registry.postsynaptic),
             len(registry.weight_update), sum(added))
    if freeze:
        registry.freeze()
    return registry
