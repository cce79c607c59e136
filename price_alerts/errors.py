"""Exceptions raised by the price alert pipeline.

Stage-level errors (repository, price provider) abort a run. ``PersistenceFailed``
is raised by the repository write and recovered per alert by the pipeline.
"""


class PriceAlertError(Exception):
    """Base class for pipeline errors."""


class RepositoryUnavailable(PriceAlertError):
    """The active-alerts read failed."""


class AlertDecodeError(RepositoryUnavailable):
    """The alert store answered, but not with alerts we can read."""


class PriceProviderUnavailable(PriceAlertError):
    """The batched price fetch failed."""


class QuoteDecodeError(PriceProviderUnavailable):
    """The price provider answered with something other than a quote map."""


class PersistenceFailed(PriceAlertError):
    """Clearing an alert's activity flag failed after the email went out."""
