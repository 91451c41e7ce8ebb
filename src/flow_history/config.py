"""Engine configuration consumed at construction time."""

from __future__ import annotations

from dataclasses import dataclass, replace

from flow_history.runtime.telemetry import env, env_flag

DEFAULT_DEBOUNCE_MS = 500
DEFAULT_SETTLE_MS = 100
DEFAULT_MAX_HISTORY_SIZE = 50


class HistoryConfigError(ValueError):
    """Raised when the engine is constructed with out-of-range settings."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


@dataclass(frozen=True, slots=True)
class HistoryConfig:
    """Tunables for capture timing and history bounds."""

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    skip_viewport_only: bool = True
    max_history_size: int = DEFAULT_MAX_HISTORY_SIZE
    # How long restores keep ignoring mutation signals after the write.
    settle_ms: int = DEFAULT_SETTLE_MS

    def __post_init__(self) -> None:
        if self.debounce_ms < 0:
            raise HistoryConfigError(
                "debounce_ms must be >= 0", field="debounce_ms"
            )
        if self.settle_ms < 0:
            raise HistoryConfigError("settle_ms must be >= 0", field="settle_ms")
        if self.max_history_size < 1:
            raise HistoryConfigError(
                "max_history_size must be >= 1", field="max_history_size"
            )

    @classmethod
    def from_env(cls, **overrides: object) -> "HistoryConfig":
        """Build a config from ``FLOW_HISTORY_*`` variables.

        Explicit keyword overrides win over the environment.
        """

        config = cls(
            debounce_ms=_env_int("DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS),
            skip_viewport_only=env_flag("SKIP_VIEWPORT_ONLY", True),
            max_history_size=_env_int("MAX_SIZE", DEFAULT_MAX_HISTORY_SIZE),
            settle_ms=_env_int("SETTLE_MS", DEFAULT_SETTLE_MS),
        )
        return replace(config, **overrides) if overrides else config


def _env_int(name: str, default: int) -> int:
    raw = env(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise HistoryConfigError(
            f"FLOW_HISTORY_{name} must be an integer, got {raw!r}", field=name.lower()
        ) from exc


__all__ = [
    "DEFAULT_DEBOUNCE_MS",
    "DEFAULT_MAX_HISTORY_SIZE",
    "DEFAULT_SETTLE_MS",
    "HistoryConfig",
    "HistoryConfigError",
]
