"""codegen — The contract between model records and the kernel generator.

Placeholder parsing, validation and substitution, and the numeric
precision (`scalar`, SCALAR_MIN) the generated code is compiled with.
"""

from .precision import (
    Precision,
    type_size,
)
from .template import (
    CONTEXT_SYMBOLS,
    Placeholder,
    parse,
    references,
    unresolved,
    check_record,
    check_host,
    check_partners,
    substitute,
    evaluate,
)
