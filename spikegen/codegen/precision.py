"""Numeric precision of generated kernels and sizes of C types.

The generated code is written against a `scalar` type that the build
resolves to either float or double. Model code may refer to SCALAR_MIN
(the alternative Traub-Miles neuron adds it to every denominator), so the
registry needs the same constants the build will see.
"""

from enum import Enum

import numpy as np


class Precision(Enum):
    """Floating point precision of `scalar` in the generated code."""
    FLOAT = "float"
    DOUBLE = "double"

    @classmethod
    def parse(cls, value):
        """Resolve a Precision from its name, case-insensitively."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown precision '{value}'. "
                f"Available: {[p.value for p in cls]}"
            ) from None

    @property
    def dtype(self):
        return np.dtype(np.float32 if self is Precision.FLOAT else np.float64)

    @property
    def scalar_min(self):
        """Smallest positive normal value (FLT_MIN / DBL_MIN)."""
        return float(np.finfo(self.dtype).tiny)

    @property
    def scalar_max(self):
        return float(np.finfo(self.dtype).max)

    def literal(self, value):
        """Format a number as a C literal of this precision."""
        text = repr(float(self.dtype.type(value)))
        if self is Precision.FLOAT:
            return text + "f"
        return text

    def definitions(self):
        """Preprocessor lines that bind `scalar` and its limits."""
        return "\n".join([
            f"#define _FTYPE GENN_{self.value.upper()}",
            f"#define scalar {self.value}",
            f"#define SCALAR_MIN {self.literal(self.scalar_min)}",
            f"#define SCALAR_MAX {self.literal(self.scalar_max)}",
        ]) + "\n"


# C type name -> numpy dtype code of the same width on this platform.
# int_fastN_t follows glibc on 64-bit targets: 16/32/64 bit are word sized.
_C_TYPES = {
    "char": "b",
    "signed char": "b",
    "unsigned char": "B",
    "wchar_t": "U1",
    "bool": "?",
    "short": "h",
    "short int": "h",
    "signed short": "h",
    "signed short int": "h",
    "unsigned short": "H",
    "unsigned short int": "H",
    "int": "i",
    "signed int": "i",
    "unsigned": "I",
    "unsigned int": "I",
    "long": "l",
    "long int": "l",
    "signed long": "l",
    "signed long int": "l",
    "unsigned long": "L",
    "unsigned long int": "L",
    "long long": "q",
    "long long int": "q",
    "signed long long": "q",
    "signed long long int": "q",
    "unsigned long long": "Q",
    "unsigned long long int": "Q",
    "float": "f",
    "double": "d",
    "long double": "g",
    "intmax_t": "q",
    "uintmax_t": "Q",
    "int8_t": "i1",
    "uint8_t": "u1",
    "int16_t": "i2",
    "uint16_t": "u2",
    "int32_t": "i4",
    "uint32_t": "u4",
    "int64_t": "i8",
    "uint64_t": "u8",
    "int_least8_t": "i1",
    "uint_least8_t": "u1",
    "int_least16_t": "i2",
    "uint_least16_t": "u2",
    "int_least32_t": "i4",
    "uint_least32_t": "u4",
    "int_least64_t": "i8",
    "uint_least64_t": "u8",
    "int_fast8_t": "i1",
    "uint_fast8_t": "u1",
    "int_fast16_t": "p",
    "uint_fast16_t": "P",
    "int_fast32_t": "p",
    "uint_fast32_t": "P",
    "int_fast64_t": "i8",
    "uint_fast64_t": "u8",
}


def type_size(ctype, precision=Precision.FLOAT):
    """Size in bytes of a C type name.

    Parameters
    ----------
    ctype : str
        A C type as written in a model definition (e.g. "scalar",
        "uint64_t", "unsigned int", "uint64_t *").
    precision : Precision or str
        Resolves the `scalar` type.

    Returns
    -------
    int
        Byte size; any pointer has the platform pointer size, and
        unrecognised types have size 0.
    """
    name = " ".join(ctype.split())
    if "*" in name:
        return np.dtype(np.intp).itemsize
    if name == "scalar":
        return Precision.parse(precision).dtype.itemsize
    code = _C_TYPES.get(name)
    if code is None:
        return 0
    return np.dtype(code).itemsize
