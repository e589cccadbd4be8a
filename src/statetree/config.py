"""Store configuration for statetree."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from statetree.exceptions import StoreConfigError

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "n", "off"})


def _env_bool(name: str, value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if not normalized:
        return default
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise StoreConfigError(f"{name} must be a boolean flag, got {value!r}")


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Store configuration.

    Parameters
    ----------
    strict : bool
        Report every state change made while no mutation is running.
        Deep-observes the whole state tree, so it is meant for development.
    devtools : bool
        Attach the debugging bridge passed to the store as ``devtools=``.
        Enabling this without supplying a hook is a configuration error.
    warn_on_silent : bool
        Log a deprecation warning when ``commit`` receives the legacy
        ``silent`` option.
    """

    strict: bool = False
    devtools: bool = False
    warn_on_silent: bool = True

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``STATETREE_STRICT``, ``STATETREE_DEVTOOLS`` and
        ``STATETREE_WARN_ON_SILENT``. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StoreConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "STATETREE_STRICT": ("strict", False),
            "STATETREE_DEVTOOLS": ("devtools", False),
            "STATETREE_WARN_ON_SILENT": ("warn_on_silent", True),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, default) in _ENV_CONFIG_MAP.items():
            if field_name in overrides:
                continue
            config_kwargs[field_name] = _env_bool(env_key, env.get(env_key), default)

        unknown = set(overrides) - {f.name for f in dataclasses.fields(cls)}
        if unknown:
            raise StoreConfigError(f"Unknown config fields: {', '.join(sorted(unknown))}")

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
