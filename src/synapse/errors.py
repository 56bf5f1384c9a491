"""Exception hierarchy for Synapse.

Extractors never raise these for transient failures; they are reserved for
the few conditions a caller has to react to.
"""

from __future__ import annotations


class SynapseError(Exception):
    """Base class for all Synapse errors."""


class IngestionError(SynapseError):
    """Raised when input is empty or no usable title could be produced."""


class FetchError(SynapseError):
    """Raised by the fetcher when a URL cannot be retrieved."""


class SsrfError(FetchError, ValueError):
    """Raised when a URL resolves to a private or reserved address."""


class OcrError(SynapseError):
    """Raised when the OCR engine is closed or the image cannot be read."""


class ItemNotFoundError(SynapseError):
    """Raised when an item id does not exist for the requesting owner."""
