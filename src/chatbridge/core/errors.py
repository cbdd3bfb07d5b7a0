class ProviderError(Exception):
    """Base class for local provider-level failures. Backend SDK errors are not wrapped."""

class ProviderClientError(ProviderError):
    """
    Caller/config issue detected before any request is made: missing credential,
    unknown provider, unusable provider settings. The fix is change input/config.
    """

class StreamCancelled(ProviderError):
    """
    Raised when a caller-supplied cancel event is set while a stream is being drained.
    Any text received so far is discarded.
    """
