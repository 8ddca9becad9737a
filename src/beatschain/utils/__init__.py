from .config import (
    AttributionConfig,
    HealthCheckConfig,
    LivepeerConfig,
    MinIOConfig,
    MintConfig,
    OrchestratorConfig,
    PinataConfig,
    RecordStoreConfig,
    load_orchestrator_config,
    orchestrator_config_from_env,
)

__all__ = [
    "AttributionConfig",
    "HealthCheckConfig",
    "LivepeerConfig",
    "MinIOConfig",
    "MintConfig",
    "OrchestratorConfig",
    "PinataConfig",
    "RecordStoreConfig",
    "load_orchestrator_config",
    "orchestrator_config_from_env",
]
