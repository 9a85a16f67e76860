# tests/test_engine_config.py
"""Tests for engine configuration loading and serialization."""

from decimal import Decimal

from gstbill.config.settings import Settings
from gstbill.domain.models.engine_config import DEFAULT_RATE_SLABS, GSTEngineConfig


def test_defaults():
    cfg = GSTEngineConfig()
    assert cfg.base_state_code == "24"
    assert cfg.large_b2c_threshold == Decimal("250000")
    assert Decimal("18") in cfg.rate_slabs
    assert cfg.source == "hardcoded"


def test_from_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("GST_BASE_STATE_CODE", "29")
    monkeypatch.setenv("GST_B2CL_THRESHOLD", "100000")
    monkeypatch.setenv("GST_RATE_SLABS", '["0", "5", "18"]')

    cfg = GSTEngineConfig.from_settings(Settings())

    assert cfg.base_state_code == "29"
    assert cfg.large_b2c_threshold == Decimal("100000")
    assert cfg.rate_slabs == frozenset({Decimal("0"), Decimal("5"), Decimal("18")})
    assert cfg.source == "settings"


def test_dict_round_trip():
    cfg = GSTEngineConfig(base_state_code="07", large_b2c_threshold=Decimal("100000"))
    restored = GSTEngineConfig.from_dict(cfg.to_dict())
    assert restored.base_state_code == "07"
    assert restored.large_b2c_threshold == Decimal("100000")
    assert restored.rate_slabs == DEFAULT_RATE_SLABS


def test_from_dict_fills_missing_keys():
    cfg = GSTEngineConfig.from_dict({})
    assert cfg.base_state_code == "24"
    assert cfg.rate_slabs == DEFAULT_RATE_SLABS
    assert cfg.source == "stored"


def test_with_base_state_keeps_other_fields():
    cfg = GSTEngineConfig(large_b2c_threshold=Decimal("1")).with_base_state("33")
    assert cfg.base_state_code == "33"
    assert cfg.large_b2c_threshold == Decimal("1")
