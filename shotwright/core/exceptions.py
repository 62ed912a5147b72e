"""
Shotwright Custom Exceptions

Exception hierarchy for provider selection, backend invocation and output validation.
"""


class ShotwrightError(Exception):
    """Base exception for all Shotwright errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(ShotwrightError):
    """Raised when there's an issue with configuration."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


class MissingCredentialsError(ConfigurationError):
    """Raised when the only backend able to serve a request has no API key."""

    def __init__(self, provider: str, env_keys: list = None):
        env_keys = env_keys or []
        hint = f" Set {' or '.join(env_keys)} in your environment or .env file." if env_keys else ""
        message = f"No API key configured for '{provider}'.{hint}"
        super().__init__(message, {"provider": provider})


# =============================================================================
# BACKEND ERRORS
# =============================================================================

class LLMError(ShotwrightError):
    """Base exception for generative backend errors."""
    pass


class BackendError(LLMError):
    """Raised when a backend invocation fails (network, inference, bad output)."""

    def __init__(self, provider: str, reason: str):
        message = f"Backend '{provider}' error: {reason}"
        super().__init__(message, {"provider": provider, "reason": reason})
        self.provider = provider
        self.reason = reason


class BackendTimeoutError(BackendError):
    """Raised when a backend invocation exceeds its time budget."""

    def __init__(self, provider: str, timeout: float):
        super().__init__(provider, f"timed out after {timeout:g}s")
        self.timeout = timeout


class ResponseParseError(BackendError):
    """Raised when backend output does not match the expected structured shape."""
    pass


class LocalBackendError(BackendError):
    """Raised when the in-process model is not ready or failed to load."""

    def __init__(self, reason: str):
        super().__init__("local", reason)


class CapabilityNotSupportedError(BackendError):
    """Raised when a backend cannot perform the requested kind of generation."""

    def __init__(self, provider: str, capability: str):
        super().__init__(provider, f"capability '{capability}' is not supported")
        self.capability = capability


class ModelAvailabilityError(LLMError):
    """Raised when no candidate model accepts a test call."""

    def __init__(self, failures: dict):
        tried = ", ".join(failures) or "none"
        message = f"No working model found (tried: {tried})"
        super().__init__(message, {"failures": failures})
        self.failures = failures


class ProviderExhaustedError(LLMError):
    """Raised when every usable backend failed for a request."""

    def __init__(self, task: str, attempts: list):
        summary = "; ".join(f"{provider}: {reason}" for provider, reason in attempts)
        message = f"All providers failed for {task}: {summary}"
        super().__init__(message)
        self.task = task
        self.attempts = attempts
