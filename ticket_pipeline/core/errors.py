"""Exception taxonomy: one error per pipeline stage plus input, config and transport."""


class TicketPipelineError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(TicketPipelineError):
    """Raised when process configuration cannot be loaded at startup."""


class ValidationError(TicketPipelineError):
    """Raised when the inbound purchase request is malformed."""


class TransportError(TicketPipelineError):
    """Network-level failure talking to a remote service."""


class StageError(TicketPipelineError):
    """Failure of one remote pipeline stage."""


class ConversionError(StageError):
    """Fiat to fiat conversion failed."""


class PriceUnavailableError(StageError):
    """Spot price could not be read or parsed."""


class InvalidOrderSizeError(StageError):
    """Order quantity cannot be derived from the amount and price."""


class OrderRejectedError(StageError):
    """Exchange refused or failed the market order."""


class TicketPurchaseError(StageError):
    """Marketplace refused or failed the ticket purchase."""
