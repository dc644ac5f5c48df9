# ==========================================================
#                  LEDGER EXCEPTIONS
# ==========================================================
# Every ledger failure is raised before any write is kept; the caller
# decides how to present it. status_code is what the HTTP layer answers with.


class LedgerError(Exception):
    """Base ledger exception"""
    status_code = 400
    default_message = "Operation failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(LedgerError):
    status_code = 404
    default_message = "Not found"


class InsufficientFunds(LedgerError):
    default_message = "Insufficient balance"


class InvalidState(LedgerError):
    status_code = 409
    default_message = "Request is no longer pending"


class DuplicateTransaction(LedgerError):
    status_code = 409
    default_message = "Transaction ID already used"


class AlreadyClaimed(LedgerError):
    status_code = 409
    default_message = "You already claimed this gift"


class CodeExhausted(LedgerError):
    default_message = "Gift code expired"


class CooldownActive(LedgerError):
    default_message = "You can claim once every 24 hours"

    def __init__(self, message=None, next_claim_at=None):
        super().__init__(message)
        self.next_claim_at = next_claim_at


class ValidationError(LedgerError):
    default_message = "Invalid request"


class ChannelClosed(LedgerError):
    status_code = 403
    default_message = "This service is temporarily unavailable"
