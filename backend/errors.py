"""Exception types shared across the checker"""


class NameCheckError(Exception):
    """Base class for name checker errors"""
    pass


class InputValidationError(NameCheckError):
    """Malformed user input. Raised before any network work begins."""
    pass


class ProbeError(NameCheckError):
    """A signal provider could not produce an answer (timeout, bad response, missing credentials).

    Never escapes an adapter: SignalProvider.probe converts it into an
    unresolved low-confidence ProbeResult.
    """

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message)
        self.provider = provider


class PipelineConfigurationError(NameCheckError):
    """A required collaborator (e.g. the LLM) is not configured"""
    pass


class GenerationError(NameCheckError):
    """The LLM was configured but candidate generation failed (transient)"""
    pass
