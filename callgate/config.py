"""Configuration model and loaders for callgate limiters.

Responsibilities:
- Define limiter configuration as a typed dataclass.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `LimiterConfig`: discipline, limit parameter and cancellation scope.
- `ConfigLoader`: static construction helpers for `LimiterConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .limiter.state import DISABLED, CancelScope, Discipline
from .parsing import (
    normalize_optional_string,
    parse_cancel_scope,
    parse_discipline,
    parse_limit,
)


_ALLOWED_KEYS = frozenset({"discipline", "limit", "cancel_scope"})

ENV_DISCIPLINE = "CALLGATE_DISCIPLINE"
ENV_LIMIT = "CALLGATE_LIMIT"
ENV_CANCEL_SCOPE = "CALLGATE_CANCEL_SCOPE"


@dataclass(frozen=True, slots=True)
class LimiterConfig:
    """Construction parameters of one limiter.

    Attributes:
        discipline: Dispatch strategy.
        limit: Max tolerable delay in ms (IMMEDIATE/DEFERRED) or queue
            capacity (QUEUE); `-1` disables it.
        cancel_scope: Timers cancelled when a dispatch exceeds the limit.
    """

    discipline: Discipline = Discipline.IMMEDIATE
    limit: int = DISABLED
    cancel_scope: CancelScope = CancelScope.KEY

    def validate(self) -> None:
        """Validate configuration values before building a limiter."""

        if not isinstance(self.discipline, Discipline):
            raise ValueError("`discipline` must be a `Discipline` value.")
        if not isinstance(self.cancel_scope, CancelScope):
            raise ValueError("`cancel_scope` must be a `CancelScope` value.")
        parse_limit(self.limit)

    def with_overrides(
        self,
        *,
        discipline: str | None = None,
        limit: int | None = None,
        cancel_scope: str | None = None,
    ) -> "LimiterConfig":
        """Return a copy with explicitly provided values replacing loaded ones."""

        return LimiterConfig(
            discipline=parse_discipline(discipline) if discipline is not None else self.discipline,
            limit=parse_limit(limit) if limit is not None else self.limit,
            cancel_scope=(
                parse_cancel_scope(cancel_scope)
                if cancel_scope is not None
                else self.cancel_scope
            ),
        )


class ConfigLoader:
    """Factory methods for loading `LimiterConfig` objects."""

    @staticmethod
    def from_yaml(path: Path) -> LimiterConfig:
        """Create a validated config from a YAML mapping file."""

        raw_text = path.read_text(encoding="utf-8")
        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a mapping/object.")
        return ConfigLoader._build_config_from_mapping(payload, f"YAML config `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> LimiterConfig:
        """Create a validated config from `CALLGATE_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for key, env_key in (
            ("discipline", ENV_DISCIPLINE),
            ("limit", ENV_LIMIT),
            ("cancel_scope", ENV_CANCEL_SCOPE),
        ):
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[key] = value
        try:
            return ConfigLoader._build_config_from_mapping(payload, "Environment")
        except ValueError as exc:
            raise ValueError(f"Invalid `CALLGATE_*` environment: {exc}") from exc

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> LimiterConfig:
        """Build and validate config from a generic mapping payload."""

        unknown = sorted(str(key) for key in payload if key not in _ALLOWED_KEYS)
        if unknown:
            raise ValueError(
                f"{source_label} contains unsupported keys: {', '.join(unknown)}."
            )

        config = LimiterConfig(
            discipline=parse_discipline(payload.get("discipline", Discipline.IMMEDIATE)),
            limit=parse_limit(payload.get("limit", DISABLED)),
            cancel_scope=parse_cancel_scope(payload.get("cancel_scope", CancelScope.KEY)),
        )
        config.validate()
        return config
