"""Config settings – EnvSettingsLoader."""
from __future__ import annotations

import abc
import dataclasses
import os
from typing import Any, TypeVar

from cachepool.config.validation import ConfigError, MissingRequiredSettingError

T = TypeVar("T")


class SettingsLoader(abc.ABC):
    """Port: load settings from an external source."""

    @abc.abstractmethod
    def load(self, settings_class: type[T]) -> T: ...


class EnvSettingsLoader(SettingsLoader):
    """Load settings from OS environment variables.

    ``CacheSettings.default_ttl`` is read from ``CACHE_DEFAULT_TTL``; an empty
    value for an optional field loads as ``None``.
    """

    def __init__(self, environ: dict[str, str] | None = None) -> None:
        self._environ = environ

    def load(self, settings_class: type[T]) -> T:
        environ = self._environ if self._environ is not None else os.environ
        prefix = getattr(settings_class, "_prefix", "").upper()
        kwargs: dict[str, Any] = {}

        for field in dataclasses.fields(settings_class):  # type: ignore[arg-type]
            env_key = f"{prefix}_{field.name}".upper().lstrip("_")
            raw = environ.get(env_key)

            if raw is None:
                if (
                    field.default is dataclasses.MISSING
                    and field.default_factory is dataclasses.MISSING  # type: ignore[misc]
                ):
                    raise MissingRequiredSettingError(env_key)
                continue

            try:
                kwargs[field.name] = self._coerce(raw, field.type)
            except ValueError as exc:
                raise ConfigError(f"Cannot parse {env_key}={raw!r}: {exc}", cause=exc) from exc

        try:
            return settings_class(**kwargs)
        except ConfigError:
            raise
        except Exception as exc:
            raise ConfigError(f"Failed to load settings: {exc}", cause=exc) from exc

    def _coerce(self, value: str, type_hint: Any) -> Any:  # noqa: PLR0911
        hint = type_hint if isinstance(type_hint, str) else getattr(type_hint, "__name__", str(type_hint))
        optional = "None" in hint
        base = hint.replace("| None", "").replace("None |", "").strip()
        if optional and value.strip() == "":
            return None
        if base == "bool":
            return value.lower() in ("1", "true", "yes", "on")
        if base == "int":
            return int(value)
        if base == "float":
            return float(value)
        if base.startswith("list"):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value


__all__ = ["EnvSettingsLoader", "SettingsLoader"]
