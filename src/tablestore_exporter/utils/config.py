import os
from typing import FrozenSet, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

ALL = "all"

METRIC_KEYS = frozenset({
    "held_locks", "lock_queue",
    "transaction_participants", "transaction_coordinators",
    "transaction_failures", "transaction_commits",
    "transaction_log_writes", "transaction_restarts",
    "memory_usage_bytes", "tablewise_memory_usage_bytes", "tablewise_size",
})

def _env(name, default):
    return lambda: os.getenv(name, default)

class Config(BaseModel):
    model_config = ConfigDict(validate_default=True)

    NODE_ID: str = Field(default_factory=_env("NODE_ID", "node-1"))
    HTTP_PORT: int = Field(default_factory=_env("HTTP_PORT", "8000"))
    METRICS_PREFIX: str = Field(default_factory=_env("METRICS_PREFIX", "tablestore_"))
    # "all" or comma separated metric keys
    COLLECTOR_METRICS: Union[str, FrozenSet[str]] = Field(default_factory=_env("COLLECTOR_METRICS", ALL))
    LOG_LEVEL: str = Field(default_factory=_env("LOG_LEVEL", "INFO"))

    @field_validator("COLLECTOR_METRICS", mode="before")
    @classmethod
    def _parse_metrics(cls, v):
        if isinstance(v, str):
            if v.strip().lower() == ALL:
                return ALL
            v = [k.strip() for k in v.split(",") if k.strip()]
        keys = frozenset(v)
        unknown = keys - METRIC_KEYS
        if unknown:
            raise ValueError(f"unknown collector metrics: {sorted(unknown)}")
        return keys

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper(cls, v):
        return v.upper()

cfg = Config()

def get_config() -> Config:
    return cfg

def reload_config(**overrides) -> Config:
    """Rebuild the process-wide config from the environment (plus overrides)."""
    global cfg
    cfg = Config(**overrides)
    return cfg
