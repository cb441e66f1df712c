"""Exception hierarchy for veoscripter.ai module."""

from veoscripter.base.exceptions import VeoScripterError


class BackendError(VeoScripterError):
    """Base exception for analysis backend errors."""

    pass


class MissingAPIKeyError(BackendError):
    """Raised when a required API key is not found."""

    def __init__(self, provider: str, env_var: str):
        super().__init__(
            f"API key for '{provider}' not found. Set the {env_var} environment variable or pass api_key parameter."
        )
        self.provider = provider
        self.env_var = env_var


class UnsupportedBackendError(BackendError):
    """Raised when an unsupported backend is requested."""

    def __init__(self, backend: str, supported: list[str]):
        super().__init__(f"Backend '{backend}' is not supported. Supported backends: {', '.join(supported)}")
        self.backend = backend
        self.supported = supported


class ConfigError(BackendError):
    """Raised when configuration values are invalid."""

    pass


class AnalysisError(BackendError):
    """Base exception for failed analysis requests."""

    pass


class AnalysisRequestError(AnalysisError):
    """Raised when the remote call fails or times out."""

    pass


class MalformedResponseError(AnalysisError):
    """Raised when a response is not valid JSON or misses mandatory fields."""

    pass


class SceneCountMismatchError(AnalysisError):
    """Raised when a resplit returns a different number of scenes than requested."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected exactly {expected} scene(s), got {actual}")
        self.expected = expected
        self.actual = actual
