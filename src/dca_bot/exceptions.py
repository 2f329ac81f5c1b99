"""Exceptions raised by the collaborators around the DCA engine.

The swap attempt executor never lets these escape: every one of them is
converted into a failure-shaped SwapOutcome at the executor boundary.
"""


class DCAError(Exception):
    """Base exception for all DCA engine errors."""


class PriceUnavailableError(DCAError):
    """Raised when no live or reference price exists for a token."""


class UnsupportedTokenError(DCAError):
    """Raised when a token symbol is not in the catalog."""


class SwapSubmissionError(DCAError):
    """Raised when the swap collaborator fails to submit a transaction.

    The message is kept verbatim because error classification works on it.
    """


class SimulationError(DCAError):
    """Raised when the degraded simulation path cannot produce a fill."""
