from .config import Settings, clear_config_cache, get_settings
from .exceptions import (
    AnalysisError,
    AnalysisRequestError,
    BackendError,
    ConfigError,
    MalformedResponseError,
    MissingAPIKeyError,
    SceneCountMismatchError,
    UnsupportedBackendError,
)
from .gateway import AnalysisGateway, VisionLLMGateway
from .session import AnalysisSession
from .states import Analyzing, Failed, Idle, Ready, Sampling, SessionState, SessionStatus

__all__ = [
    # Exceptions
    "BackendError",
    "MissingAPIKeyError",
    "UnsupportedBackendError",
    "ConfigError",
    "AnalysisError",
    "AnalysisRequestError",
    "MalformedResponseError",
    "SceneCountMismatchError",
    # Config
    "Settings",
    "get_settings",
    "clear_config_cache",
    # Gateway
    "AnalysisGateway",
    "VisionLLMGateway",
    # Session
    "AnalysisSession",
    "SessionState",
    "SessionStatus",
    "Idle",
    "Sampling",
    "Analyzing",
    "Ready",
    "Failed",
]
