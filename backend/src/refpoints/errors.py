"""Domain errors raised by the points services.

Nothing here is caught inside the core; every error travels up to the
caller (API router or CLI command), which turns it into a user-facing
message.
"""


class RefpointsError(Exception):
    """Base class for all domain errors."""
    pass


class NotFoundError(RefpointsError):
    """Raised when an id does not resolve to a record."""

    entity = "Record"

    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"{self.entity} {record_id} not found")


class TransactionNotFoundError(NotFoundError):
    entity = "Transaction"


class CustomerNotFoundError(NotFoundError):
    entity = "Customer"


class CampaignNotFoundError(NotFoundError):
    entity = "Campaign"


class InvalidStatusError(RefpointsError):
    """Raised when a requested status is not one of the known values."""

    def __init__(self, status: object):
        self.status = status
        super().__init__(f"Invalid transaction status: {status!r}")


class InvalidTransitionError(RefpointsError):
    """Raised when a transaction is asked to leave a terminal state."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move transaction from {current} to {requested}")


class InsufficientPointsError(RefpointsError):
    """Raised when a redemption asks for more points than are available."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient points: required {required}, available {available}")


class InvalidCampaignSettingsError(RefpointsError, ValueError):
    """Raised when a campaign setting has an unusable value."""
    pass


class InvalidRedemptionConfigError(InvalidCampaignSettingsError):
    """Raised when a campaign's redemption settings cannot be applied."""
    pass


class PurchaseNotEligibleError(RefpointsError):
    """Raised when a bill does not qualify under its campaign."""
    pass


class InvalidReferralCodeError(RefpointsError):
    """Raised when a referral code does not belong to any customer."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Invalid referral code: {code}")
