# tests/test_config.py
"""
Tests for solver configuration.
"""

from dataclasses import FrozenInstanceError

import pytest

from guaranteed_defs.config import IterationOrder, SolverConfig
from guaranteed_defs.errors import ConfigurationError


class TestSolverConfig:

    def test_defaults(self):
        config = SolverConfig()
        assert config.order is IterationOrder.REVERSE_POSTORDER
        assert config.max_passes is None
        assert config.check_invariants is False
        assert config.log_passes is False

    def test_is_frozen(self):
        config = SolverConfig()
        with pytest.raises(FrozenInstanceError):
            config.max_passes = 3

    @pytest.mark.parametrize("bad", [0, -1, 2.5, True, "10"])
    def test_bad_max_passes(self, bad):
        with pytest.raises(ConfigurationError):
            SolverConfig(max_passes=bad)

    def test_bad_order(self):
        with pytest.raises(ConfigurationError):
            SolverConfig(order="rpo")


class TestFromMapping:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("rpo", IterationOrder.REVERSE_POSTORDER),
            ("REVERSE_POSTORDER", IterationOrder.REVERSE_POSTORDER),
            ("declaration", IterationOrder.DECLARATION),
            (" Declaration ", IterationOrder.DECLARATION),
            (IterationOrder.DECLARATION, IterationOrder.DECLARATION),
        ],
    )
    def test_order_spellings(self, raw, expected):
        assert SolverConfig.from_mapping({"order": raw}).order is expected

    def test_all_fields(self):
        config = SolverConfig.from_mapping(
            {"max_passes": 50, "check_invariants": True, "log_passes": True}
        )
        assert config.max_passes == 50
        assert config.check_invariants
        assert config.log_passes

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError) as exc:
            SolverConfig.from_mapping({"widening": True})
        assert "widening" in str(exc.value)

    def test_unknown_order(self):
        with pytest.raises(ConfigurationError):
            SolverConfig.from_mapping({"order": "random"})

    def test_empty_mapping(self):
        assert SolverConfig.from_mapping({}) == SolverConfig()
