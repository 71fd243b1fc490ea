"""Tests for the placeholder grammar."""

import math

import pytest

from spikegen.codegen.template import (
    CONTEXT_SYMBOLS,
    check_host,
    check_partners,
    check_record,
    evaluate,
    parse,
    references,
    substitute,
    unresolved,
)
from spikegen.errors import ModelDefinitionError
from spikegen.models import build
from spikegen.models.records import NeuronModel, PostSynapticModel


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def registry():
    return build()


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class TestParse:
    def test_names_and_positions(self):
        text = "$(V) >= $(ip2)"
        found = parse(text)
        assert [p.name for p in found] == ["V", "ip2"]
        assert text[found[1].start: found[1].end] == "$(ip2)"

    def test_partner_qualifier(self):
        (p,) = parse("$(V_pre)")
        assert p.partner == "pre"
        assert p.base == "V"

    def test_spike_times_are_context_not_partner(self):
        (p,) = parse("$(sT_post)")
        assert p.partner is None
        assert p.base == "sT_post"
        assert "sT_post" in CONTEXT_SYMBOLS

    def test_plain_name(self):
        (p,) = parse("$(gRaw)")
        assert p.partner is None

    @pytest.mark.parametrize("text", ["$(V", "$( V)", "$(1x)", "a + $()"])
    def test_malformed(self, text):
        with pytest.raises(ModelDefinitionError, match="Malformed"):
            parse(text)

    def test_no_placeholders(self):
        assert parse("0") == []

    def test_references_are_distinct_in_order(self):
        assert references("$(V) = $(c); $(U) += $(d) + $(V);") == ["V", "c", "U", "d"]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    def test_standard_models_resolve(self, registry):
        for catalog in registry.catalogs:
            for record in catalog:
                assert unresolved(record) == []
                check_record(record)

    def test_unresolved_reports_slot(self):
        model = NeuronModel(name="x", variables=["V"],
                            sim_code="$(V) += $(I);",
                            threshold_condition_code="$(V_pre) > 0")
        assert unresolved(model) == [("sim", "I"), ("threshold", "V_pre")]

    def test_postsynaptic_host_references(self, registry):
        exp_decay = registry.postsynaptic.by_name("exp_decay")
        check_host(exp_decay, registry.neurons.by_name("traub_miles"))
        with pytest.raises(ModelDefinitionError, match="spike_source"):
            check_host(exp_decay, registry.neurons.by_name("spike_source"))

    def test_postsynaptic_without_host_references(self, registry):
        ps = registry.postsynaptic.by_name("izhikevich_ps")
        check_host(ps, registry.neurons.by_name("spike_source"))

    def test_partner_references(self, registry):
        graded = registry.weight_update.by_name("ngradsynapse")
        rulkov = registry.neurons.by_name("rulkov_map")
        source = registry.neurons.by_name("spike_source")
        check_partners(graded, rulkov, source)
        with pytest.raises(ModelDefinitionError, match="V_pre"):
            check_partners(graded, source, rulkov)

    def test_host_check_uses_neuron_parameters(self):
        ps = PostSynapticModel(name="shunt",
                               current_converter_code="$(inSyn)*($(Erev)-$(V))")
        neuron = NeuronModel(name="n", variables=["V"], param_names=["Erev"],
                             threshold_condition_code="$(V) > 0")
        check_host(ps, neuron)


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------

class TestSubstitute:
    def test_replaces_all(self):
        text = substitute("$(inSyn)*=$(expDecay);", {"inSyn": "inSynExc",
                                                     "expDecay": 0.5})
        assert text == "inSynExc*=0.5;"

    def test_strict_missing(self):
        with pytest.raises(ModelDefinitionError, match="Available"):
            substitute("$(V) > $(Vthresh)", {"V": "lV"})

    def test_lenient_keeps_placeholder(self):
        text = substitute("$(V) > $(Vthresh)", {"V": "lV"}, strict=False)
        assert text == "lV > $(Vthresh)"

    def test_repeated_passes(self):
        first = substitute("$(V_pre) > $(Epre)", {"Epre": "-45.0"}, strict=False)
        assert substitute(first, {"V_pre": "lV_pre"}) == "lV_pre > -45.0"


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

class TestEvaluate:
    def test_comparison(self):
        assert evaluate("$(V) >= $(ip2)", {"V": 5.0, "ip2": 5.0})
        assert not evaluate("$(V) > $(ip2)", {"V": 5.0, "ip2": 5.0})

    def test_logic(self):
        values = {"V": 0.5, "ip2": 1.0, "preV": -0.2}
        assert evaluate("($(V) < $(ip2)) && ($(preV) <= 0)", values)
        assert evaluate("($(V) > $(ip2)) || !($(preV) > 0)", values)
        assert evaluate("$(V) != $(ip2)", values)

    def test_float_literal_suffix(self):
        assert evaluate("1.5f + 2") == 3.5

    def test_suffix_only_stripped_from_literals(self):
        assert evaluate("$(w2f) > 0", {"w2f": 1.0})
        assert evaluate("0x1f") == 31
        assert evaluate("2.5e-1f + .5f") == 0.75

    def test_functions(self):
        assert evaluate("exp(0.0)") == 1.0
        assert evaluate("tanh($(x))", {"x": 0.3}) == pytest.approx(math.tanh(0.3))

    def test_constant_false(self):
        assert not evaluate("0")

    def test_missing_value(self):
        with pytest.raises(ModelDefinitionError):
            evaluate("$(V) > 0")

    @pytest.mark.parametrize("text", [
        "__import__('os')",
        "open('x')",
        "$(V).real",
        "[1, 2]",
        "$(V) = 1;",
    ])
    def test_rejects_non_arithmetic(self, text):
        with pytest.raises(ModelDefinitionError):
            evaluate(text, {"V": 1.0})
