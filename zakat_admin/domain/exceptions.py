"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input rejected before anything is submitted upstream"""

    pass


class DistributionTotalError(ValidationError):
    """Distribution phases do not add up to exactly 100 percent"""

    def __init__(self, total_percentage: float):
        self.total_percentage = total_percentage
        self.difference = total_percentage - 100
        if self.difference < 0:
            detail = f"{-self.difference:g}% short"
        else:
            detail = f"{self.difference:g}% over"
        super().__init__(f"Total distribution is {total_percentage:g}% ({detail}); it must be exactly 100%")


class PhasePercentageError(ValidationError):
    """A single phase percentage lies outside 0-100"""

    def __init__(self, description: str, percentage: float):
        self.description = description
        self.percentage = percentage
        super().__init__(f"Phase '{description}' is {percentage:g}%; each phase must be between 0% and 100%")


class InvalidAmountError(ValidationError):
    """Approved amount is missing, non-positive or above the requested amount"""

    pass


class InvalidRecurringConfigError(ValidationError):
    """Recurring schedule configuration is out of range or incomplete"""

    pass


class MissingCommentsError(ValidationError):
    """Committee comments are required for every decision"""

    pass


class WorkflowStateError(DomainException):
    """Operation not allowed in the decision workflow's current state"""

    pass


class ErpAPIError(DomainException):
    """ERP API returned an error or is unavailable"""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
