"""
Engine Configuration

Settings shared by the audit log and the policy registry.
Values can be built directly or read from ``COMPLIANCEKIT_*`` environment
variables.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "COMPLIANCEKIT_"


class EngineConfig(BaseModel):
    """Configuration for a compliance engine instance."""

    max_audit_entries: int = Field(
        default=10000,
        ge=1,
        description="Audit log capacity; oldest entries are evicted beyond it",
    )
    default_user: str = Field(
        default="system",
        min_length=1,
        description="User recorded in audit entries when the caller supplies none",
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from ``COMPLIANCEKIT_*`` environment variables.

        Unset variables keep their defaults. Invalid values raise
        ``pydantic.ValidationError``.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls(**values)
