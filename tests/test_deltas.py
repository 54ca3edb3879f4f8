"""Tests for delta computation and confidence scoring."""

from decimal import Decimal

import pytest

from etf_rotation.engine import DeltaEngine, confidence, potential_gain


class TestConfidence:
    def test_base_is_half_the_delta(self):
        assert confidence(Decimal("0.8"), Decimal("0.9"), Decimal("0.1")) == Decimal("0.4")

    def test_opposite_signs_bonus(self):
        assert confidence(Decimal("0.8"), Decimal("0.5"), Decimal("-0.3")) == Decimal("20.4")

    def test_zero_is_not_opposite(self):
        assert confidence(Decimal("0.5"), Decimal("0.5"), Decimal("0")) == Decimal("0.25")

    def test_large_delta_bonus(self):
        # 1.6 / 2 + 20 (opposite) + 15 (above 1.0)
        assert confidence(Decimal("1.6"), Decimal("1.0"), Decimal("-0.6")) == Decimal("35.8")

    def test_delta_of_exactly_one_gets_no_large_bonus(self):
        assert confidence(Decimal("1.0"), Decimal("2.0"), Decimal("1.0")) == Decimal("0.5")

    def test_clamped_to_100(self):
        assert confidence(Decimal("500"), Decimal("250"), Decimal("-250")) == Decimal("100")

    @pytest.mark.parametrize("delta,ref,target", [
        ("0", "0", "0"),
        ("-3.5", "-2", "1.5"),
        ("199.9", "100", "-99.9"),
        ("-1000", "-500", "500"),
        ("0.0001", "0.0001", "0"),
    ])
    def test_bounds(self, delta, ref, target):
        score = confidence(Decimal(delta), Decimal(ref), Decimal(target))
        assert Decimal("0") <= score <= Decimal("100")


class TestPotentialGain:
    def test_percent_of_portfolio(self):
        assert potential_gain(Decimal("1.5"), Decimal("100000")) == Decimal("1500")

    def test_negative_delta(self):
        assert potential_gain(Decimal("-0.5"), Decimal("10000")) == Decimal("-50")


class TestDeltaEngine:
    def test_ordering_descending(self, make_registry):
        registry = make_registry({
            "REF": ("1.0", "100"),
            "X": ("-0.6", "100"),
            "Y": ("0.2", "100"),
            "Z": ("0.3", "100"),
        })
        deltas = DeltaEngine(registry).compute_deltas("REF", Decimal("100000"))

        assert [d.target_symbol for d in deltas] == ["X", "Y", "Z"]
        assert [d.delta for d in deltas] == [Decimal("1.6"), Decimal("0.8"), Decimal("0.7")]

    def test_symmetry(self, make_registry):
        registry = make_registry({"A": ("0.7", "50"), "B": ("-0.4", "80")})
        engine = DeltaEngine(registry)

        a_to_b = engine.compute_deltas("A", Decimal("1000"))[0]
        b_to_a = engine.compute_deltas("B", Decimal("1000"))[0]

        assert a_to_b.delta == -b_to_a.delta

    def test_gains_and_fee(self, make_registry):
        registry = make_registry({"V": ("1.0", "100"), "W": ("-0.5", "50")})
        delta = DeltaEngine(registry, fee=Decimal("50")).compute_deltas("V", Decimal("100000"))[0]

        assert delta.delta == Decimal("1.5")
        assert delta.potential_gain == Decimal("1500")
        assert delta.net_gain == Decimal("1450")
        assert delta.reference_price == Decimal("100")
        assert delta.target_price == Decimal("50")

    def test_reference_without_variation_returns_empty(self, make_registry):
        registry = make_registry({"REF": (None, "100"), "X": ("0.5", "100")})
        assert DeltaEngine(registry).compute_deltas("REF", Decimal("1000")) == []

    def test_reference_without_quote_returns_empty(self, make_registry):
        registry = make_registry({"REF": None, "X": ("0.5", "100")})
        assert DeltaEngine(registry).compute_deltas("REF", Decimal("1000")) == []

    def test_unknown_reference_returns_empty(self, make_registry):
        registry = make_registry({"X": ("0.5", "100")})
        assert DeltaEngine(registry).compute_deltas("NOPE", Decimal("1000")) == []

    def test_targets_without_variation_are_skipped(self, make_registry):
        registry = make_registry({
            "REF": ("1.0", "100"),
            "X": (None, "100"),
            "Y": ("0.2", None),
            "Z": None,
        })
        deltas = DeltaEngine(registry).compute_deltas("REF", Decimal("1000"))

        assert [d.target_symbol for d in deltas] == ["Y"]
        assert deltas[0].target_price is None

    def test_zero_variation_is_usable(self, make_registry):
        registry = make_registry({"REF": ("0", "100"), "X": ("0", "100")})
        deltas = DeltaEngine(registry).compute_deltas("REF", Decimal("1000"))

        assert len(deltas) == 1
        assert deltas[0].delta == Decimal("0")

    def test_equal_deltas_keep_registry_order(self, make_registry):
        registry = make_registry({
            "B": ("0.1", "100"),
            "REF": ("0.5", "100"),
            "A": ("0.1", "100"),
            "C": ("0.1", "100"),
        })
        deltas = DeltaEngine(registry).compute_deltas("REF", Decimal("1000"))
        assert [d.target_symbol for d in deltas] == ["B", "A", "C"]

    def test_does_not_mutate_registry(self, make_registry):
        registry = make_registry({"REF": ("1.0", "100"), "X": ("0.2", "90")})
        before = {s: registry.quote(s) for s in registry.symbols()}

        engine = DeltaEngine(registry)
        first = engine.compute_deltas("REF", Decimal("1000"))
        second = engine.compute_deltas("REF", Decimal("1000"))

        assert first == second
        assert {s: registry.quote(s) for s in registry.symbols()} == before
