"""Exception hierarchy for the review pipeline."""


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(PipelineError):
    """Fatal configuration problem detected before any crawling starts."""


class NavigationError(PipelineError):
    """Transient failure while driving the browser (retryable)."""


class SelectorNotFoundError(NavigationError):
    """No strategy in a selector chain matched within the timeout."""

    def __init__(self, chain_name: str, tried: int):
        super().__init__(f"No element found for '{chain_name}' ({tried} strategies tried)")
        self.chain_name = chain_name
        self.tried = tried


class EmptyModelResponseError(PipelineError):
    """The language model returned no content (retryable)."""


class PersistenceError(PipelineError):
    """The storage collaborator could not write a record."""


class CrawlCancelled(PipelineError):
    """Raised when a cancellation token is observed between units of work."""
