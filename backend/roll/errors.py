# roll/errors.py
GENERIC_RETRY_MESSAGE = "Something went wrong. Please try again in a few seconds."


class RollError(Exception):
    """Base for every rejection the request layer may show to a player."""

    default_message = GENERIC_RETRY_MESSAGE

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RollError):
    """Malformed or out-of-bounds bet input."""


class InsufficientBalanceError(RollError):
    default_message = "You don’t have enough balance for this action."


class ExposureLimitExceededError(RollError):
    """Per-round max bet or max profit ceiling would be crossed."""


class InvalidStateError(RollError):
    """Operation attempted against a round that is not in the required state."""


class RoundBusyError(InvalidStateError):
    """The round's admission lock could not be taken in time."""


class RoundCreationError(RollError):
    pass


class SeedConsumedError(RuntimeError):
    pass
