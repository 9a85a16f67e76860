# gstbill/domain/models/engine_config.py
"""
Jurisdictional configuration for the tax engine.

The large-B2C threshold, the permitted rate slabs and the tenant's home
state are injected, never hard-coded in the calculator or classifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

DEFAULT_RATE_SLABS = frozenset(
    Decimal(r) for r in ("0", "0.25", "3", "5", "12", "18", "28")
)


@dataclass(frozen=True)
class GSTEngineConfig:
    """Per-tenant engine parameters."""

    base_state_code: str = "24"
    large_b2c_threshold: Decimal = Decimal("250000")
    rate_slabs: frozenset[Decimal] = field(default_factory=lambda: DEFAULT_RATE_SLABS)
    numbering_max_attempts: int = 3
    source: str = "hardcoded"  # "hardcoded", "settings", "stored"

    def with_base_state(self, state_code: str) -> GSTEngineConfig:
        return GSTEngineConfig(
            base_state_code=state_code,
            large_b2c_threshold=self.large_b2c_threshold,
            rate_slabs=self.rate_slabs,
            numbering_max_attempts=self.numbering_max_attempts,
            source=self.source,
        )

    # ---- serialization ----

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict for DB storage."""
        return {
            "base_state_code": self.base_state_code,
            "large_b2c_threshold": str(self.large_b2c_threshold),
            "rate_slabs": [str(r) for r in sorted(self.rate_slabs)],
            "numbering_max_attempts": self.numbering_max_attempts,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GSTEngineConfig:
        """Reconstruct from a stored JSON dict."""
        slabs = data.get("rate_slabs")
        return cls(
            base_state_code=str(data.get("base_state_code", "24")),
            large_b2c_threshold=Decimal(str(data.get("large_b2c_threshold", "250000"))),
            rate_slabs=frozenset(Decimal(str(r)) for r in slabs) if slabs is not None else DEFAULT_RATE_SLABS,
            numbering_max_attempts=int(data.get("numbering_max_attempts", 3)),
            source=data.get("source", "stored"),
        )

    @classmethod
    def from_settings(cls, settings: Any) -> GSTEngineConfig:
        return cls(
            base_state_code=settings.GST_BASE_STATE_CODE,
            large_b2c_threshold=Decimal(str(settings.GST_B2CL_THRESHOLD)),
            rate_slabs=frozenset(Decimal(str(r)) for r in settings.GST_RATE_SLABS),
            numbering_max_attempts=settings.GST_NUMBERING_MAX_ATTEMPTS,
            source="settings",
        )
