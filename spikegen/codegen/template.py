"""The placeholder grammar shared by model records and the code generator.

A code fragment is C-like text in which references the generator must
resolve are written as placeholders:

    $(name)

`name` is an identifier. It resolves, in order, to

1. a name owned by the record: variable, parameter, derived parameter or
   extra global parameter;
2. a simulation-context symbol (CONTEXT_SYMBOLS), e.g. $(t) or $(Isyn);
3. for weight-update models, a partner-qualified variable such as
   $(V_pre) or $(V_post), naming a variable of the pre- or postsynaptic
   population;
4. for postsynaptic models, any other name is a variable or parameter of
   the host neuron, e.g. $(V) in a conductance-based current.

Names of the last two kinds depend on the models a synapse population is
built from, so check_host() and check_partners() validate them once the
pairing is known.

$(sT_pre) and $(sT_post) are the last spike times of the partner neurons.
The generator keeps a per-neuron array for them only when the record's
flags ask for it, so a record that references one without setting the
matching flag is rejected.
"""

import ast
import operator
import re
from dataclasses import dataclass
from typing import Optional

import numpy as np

from spikegen.errors import ModelDefinitionError


PLACEHOLDER = re.compile(r"\$\(([A-Za-z_][A-Za-z0-9_]*)\)")
_OPENER = re.compile(r"\$\(")

CONTEXT_SYMBOLS = {
    "t": "current simulation time",
    "id": "index of the neuron in its population",
    "Isyn": "total synaptic input current of the neuron",
    "inSyn": "accumulated synaptic input of the postsynaptic population",
    "addtoinSyn": "amount a synaptic event adds to inSyn",
    "updatelinsyn": "statement that commits addtoinSyn to inSyn",
    "sT_pre": "last spike time of the presynaptic neuron",
    "sT_post": "last spike time of the postsynaptic neuron",
}

PARTNERS = ("pre", "post")

# Context symbol -> record flag the generator needs to provide it.
SPIKE_TIME_FLAGS = {
    "sT_pre": "needs_pre_spike_time",
    "sT_post": "needs_post_spike_time",
}


@dataclass(frozen=True)
class Placeholder:
    """One `$(name)` occurrence in a template."""
    name: str
    start: int
    end: int

    @property
    def partner(self) -> Optional[str]:
        """'pre' or 'post' for partner-qualified names, else None."""
        if self.name in CONTEXT_SYMBOLS:
            return None
        base, _, suffix = self.name.rpartition("_")
        if base and suffix in PARTNERS:
            return suffix
        return None

    @property
    def base(self) -> str:
        """The name without its partner qualifier."""
        if self.partner is None:
            return self.name
        return self.name[: -len(self.partner) - 1]


def parse(template):
    """Parse a template into its placeholders, in order of appearance.

    Raises
    ------
    ModelDefinitionError
        If a `$(` opens something that is not a well-formed placeholder.
    """
    found = [Placeholder(m.group(1), m.start(), m.end())
             for m in PLACEHOLDER.finditer(template)]
    starts = {p.start for p in found}
    for opener in _OPENER.finditer(template):
        if opener.start() not in starts:
            snippet = template[opener.start(): opener.start() + 20]
            raise ModelDefinitionError(
                f"Malformed placeholder at offset {opener.start()}: "
                f"'{snippet}'"
            )
    return found


def references(template):
    """Distinct names referenced by a template, in order of first use."""
    seen = []
    for placeholder in parse(template):
        if placeholder.name not in seen:
            seen.append(placeholder.name)
    return seen


def _resolves(placeholder, owned, variant):
    if placeholder.name in owned or placeholder.name in CONTEXT_SYMBOLS:
        return True
    if variant == "postsynaptic":
        return True
    return placeholder.partner is not None and variant == "weight_update"


def _foreign(record):
    owned = set(record.names)
    for fragment in record.fragments:
        for placeholder in parse(fragment.template):
            if (placeholder.name not in owned
                    and placeholder.name not in CONTEXT_SYMBOLS):
                yield placeholder


def unresolved(record):
    """Names in a record's fragments that nothing resolves.

    Returns
    -------
    list of (str, str)
        (slot, name) pairs, in fragment order.
    """
    owned = set(record.names)
    missing = []
    for fragment in record.fragments:
        for placeholder in parse(fragment.template):
            if not _resolves(placeholder, owned, record.variant):
                missing.append((fragment.slot, placeholder.name))
    return missing


def check_record(record):
    """Validate every fragment of a record against the grammar.

    Raises
    ------
    ModelDefinitionError
        On unresolved names, or on spike-time references whose flag is unset.
    """
    missing = unresolved(record)
    if missing:
        listed = ", ".join(f"{slot}:$({name})" for slot, name in missing)
        raise ModelDefinitionError(
            f"Model '{record.name}' references unknown names: {listed}"
        )
    used = set()
    for fragment in record.fragments:
        used.update(references(fragment.template))
    for symbol, flag in SPIKE_TIME_FLAGS.items():
        if symbol in used and not getattr(record, flag, False):
            raise ModelDefinitionError(
                f"Model '{record.name}' uses $({symbol}) but does not set {flag}"
            )


def check_host(postsynaptic, neuron):
    """Check a postsynaptic model's host references against a neuron model."""
    available = set(neuron.names)
    missing = sorted({p.name for p in _foreign(postsynaptic)
                      if p.name not in available})
    if missing:
        raise ModelDefinitionError(
            f"Postsynaptic model '{postsynaptic.name}' needs {missing} "
            f"from its host neuron, which neuron model '{neuron.name}' "
            f"does not have"
        )


def check_partners(weight_update, pre, post):
    """Check a weight-update model's partner references against neurons."""
    partners = {"pre": pre, "post": post}
    missing = []
    for placeholder in _foreign(weight_update):
        neuron = partners[placeholder.partner]
        if placeholder.base not in neuron.names:
            missing.append(f"{placeholder.name} (not in '{neuron.name}')")
    if missing:
        raise ModelDefinitionError(
            f"Weight update model '{weight_update.name}' references "
            f"unknown partner variables: {', '.join(sorted(set(missing)))}"
        )


def substitute(template, values, strict=True):
    """Replace placeholders by the text given in `values`.

    Parameters
    ----------
    template : str
    values : Mapping[str, object]
        name -> replacement. Non-string values are written with str().
    strict : bool
        If True, a placeholder missing from `values` is an error;
        otherwise it is left in place for a later pass.

    Returns
    -------
    str
    """
    pieces = []
    cursor = 0
    for placeholder in parse(template):
        pieces.append(template[cursor: placeholder.start])
        if placeholder.name in values:
            value = values[placeholder.name]
            pieces.append(value if isinstance(value, str) else str(value))
        elif strict:
            raise ModelDefinitionError(
                f"No value for placeholder $({placeholder.name}). "
                f"Available: {list(values.keys())}"
            )
        else:
            pieces.append(template[placeholder.start: placeholder.end])
        cursor = placeholder.end
    pieces.append(template[cursor:])
    return "".join(pieces)


# ---------------------------------------------------------------------------
# Expression evaluation
# ---------------------------------------------------------------------------

_BINARY = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: np.divide,
    ast.Mod: np.fmod,
}

_UNARY = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Not: operator.not_,
}

_COMPARE = {
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
}

_FUNCTIONS = {
    "exp": np.exp,
    "tanh": np.tanh,
    "fabs": np.fabs,
    "abs": np.abs,
    "sqrt": np.sqrt,
    "log": np.log,
}


def _to_python(expression):
    text = PLACEHOLDER.sub(r"\1", expression)
    text = text.replace("&&", " and ").replace("||", " or ")
    text = re.sub(r"!(?!=)", " not ", text)
    return re.sub(r"(?<![\w.])((?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)[fF]\b",
                  r"\1", text)


def _evaluate(node, env):
    if isinstance(node, ast.Expression):
        return _evaluate(node.body, env)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.Name):
        if node.id not in env:
            raise ModelDefinitionError(
                f"No value for '{node.id}'. Available: {list(env.keys())}"
            )
        return env[node.id]
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY:
        return _BINARY[type(node.op)](_evaluate(node.left, env),
                                      _evaluate(node.right, env))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY:
        return _UNARY[type(node.op)](_evaluate(node.operand, env))
    if isinstance(node, ast.BoolOp):
        if isinstance(node.op, ast.And):
            return all(_evaluate(v, env) for v in node.values)
        return any(_evaluate(v, env) for v in node.values)
    if isinstance(node, ast.Compare):
        left = _evaluate(node.left, env)
        for op, comparator in zip(node.ops, node.comparators):
            if type(op) not in _COMPARE:
                break
            right = _evaluate(comparator, env)
            if not _COMPARE[type(op)](left, right):
                return False
            left = right
        else:
            return True
    if (isinstance(node, ast.Call) and isinstance(node.func, ast.Name)
            and node.func.id in _FUNCTIONS and not node.keywords):
        args = [_evaluate(a, env) for a in node.args]
        return _FUNCTIONS[node.func.id](*args)
    raise ModelDefinitionError(
        f"Unsupported construct in expression: {ast.dump(node)}"
    )


def evaluate(expression, values=None):
    """Evaluate a C-style expression fragment with numeric values.

    Understands arithmetic, comparisons, `&&`, `||`, `!`, float literals
    with an `f` suffix and the math functions in _FUNCTIONS. Placeholders
    are looked up by name in `values`. Division is always floating point,
    and dividing by zero gives inf or nan rather than raising.

    Used to check threshold and current expressions without a compiler;
    statements (sim code) are not expressions and are rejected.
    """
    env = dict(values or {})
    try:
        tree = ast.parse(_to_python(expression).strip(), mode="eval")
    except SyntaxError as error:
        raise ModelDefinitionError(
            f"Cannot evaluate '{expression}': {error.msg}"
        ) from error
    return _evaluate(tree, env)
