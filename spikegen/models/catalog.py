"""Append-only catalogs of model records.

A ModelCatalog holds the records of one variant. The handle of a record is
its zero-based position: handles are dense, assigned at registration and
never change, because nothing can be removed or reordered. Once frozen,
a catalog rejects any further registration and can be shared freely.
"""

import numbers

import pandas as pd

from spikegen.codegen import template
from spikegen.errors import (
    CatalogFrozenError,
    ModelDefinitionError,
    UnknownHandleError,
)
from spikegen.models.records import RECORD_TYPES
from spikegen.utils import get_logger

LOG = get_logger("models.catalog")


class ModelCatalog:
    """Registry of model records of a single variant.

    Supports lookup by handle, by model name, or by alias.
    """

    def __init__(self, variant):
        if variant not in RECORD_TYPES:
            raise ValueError(f"Unknown model variant '{variant}'. "
                             f"Available: {list(RECORD_TYPES.keys())}")
        self.variant = variant
        self._records = []
        self._handles = {}      # name or alias → handle
        self._frozen = False

    def _check_mutable(self, action):
        if self._frozen:
            raise CatalogFrozenError(
                f"Cannot {action}: the {self.variant} catalog is frozen"
            )

    def register(self, record):
        """Append a record and return its handle.

        Raises
        ------
        CatalogFrozenError
            If the catalog has been frozen.
        ModelDefinitionError
            If the record is of another variant, its name is taken, or its
            code references names nothing resolves.
        """
        self._check_mutable(f"register '{getattr(record, 'name', record)}'")
        expected = RECORD_TYPES[self.variant]
        if not isinstance(record, expected):
            raise ModelDefinitionError(
                f"The {self.variant} catalog only takes {expected.__name__} "
                f"records, got {type(record).__name__}"
            )
        if record.name in self._handles:
            raise ModelDefinitionError(
                f"A {self.variant} model named '{record.name}' is already "
                f"registered (handle {self._handles[record.name]})"
            )
        template.check_record(record)

        handle = len(self._records)
        self._records.append(record)
        self._handles[record.name] = handle
        LOG.debug("Registered %s model '%s' as handle %d",
                  self.variant, record.name, handle)
        return handle

    def alias(self, name, handle):
        """Make `name` a second name for an existing handle."""
        self._check_mutable(f"alias '{name}'")
        self.get(handle)
        if name in self._handles:
            raise ModelDefinitionError(
                f"A {self.variant} model named '{name}' is already registered"
            )
        self._handles[name] = handle

    def freeze(self):
        """Reject any further change. Idempotent."""
        if not self._frozen:
            self._frozen = True
            LOG.debug("Froze %s catalog with %d models",
                      self.variant, len(self._records))
        return self

    @property
    def frozen(self):
        return self._frozen

    def get(self, handle):
        """Get a record by handle."""
        if (isinstance(handle, bool) or not isinstance(handle, numbers.Integral)
                or not 0 <= handle < len(self._records)):
            raise UnknownHandleError(
                f"Unknown {self.variant} model handle {handle!r}. "
                f"Valid handles: 0..{len(self._records) - 1}"
            )
        return self._records[handle]

    def handle_of(self, name):
        """Handle registered under a model name or alias."""
        if name not in self._handles:
            raise UnknownHandleError(
                f"Unknown {self.variant} model '{name}'. "
                f"Available: {list(self._handles.keys())}"
            )
        return self._handles[name]

    def by_name(self, name):
        """Get a record by model name or alias."""
        return self._records[self.handle_of(name)]

    def aliases(self):
        """Mapping of alias → handle, excluding the records' own names."""
        return {name: handle for name, handle in self._handles.items()
                if self._records[handle].name != name}

    def summary(self):
        """One row per handle, describing each registered record.

        Returns
        -------
        pd.DataFrame
        """
        rows = []
        for handle, record in enumerate(self._records):
            rows.append({
                "handle": handle,
                "name": record.name,
                "variant": self.variant,
                "n_vars": len(record.variables),
                "n_params": len(record.param_names),
                "n_derived": len(record.derived_param_names),
                "derived_kind": (record.derived_params.kind.value
                                 if record.derived_params is not None
                                 else None),
                "slots": ",".join(f.slot for f in record.fragments),
            })
        columns = ["handle", "name", "variant", "n_vars", "n_params",
                   "n_derived", "derived_kind", "slots"]
        return pd.DataFrame(rows, columns=columns).set_index("handle")

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(tuple(self._records))

    def __contains__(self, name):
        return name in self._handles

    def __repr__(self):
        state = "frozen" if self._frozen else "open"
        return (f"ModelCatalog({self.variant!r}, {len(self._records)} "
                f"models, {state})")
