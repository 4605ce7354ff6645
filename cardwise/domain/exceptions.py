"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidDayOfMonthError(DomainException):
    """Day-of-month configuration outside 1-31"""

    def __init__(self, day: object):
        super().__init__(f"Day of month must be an integer in 1-31, got {day!r}")
        self.day = day


class InvalidMonthError(DomainException):
    """Month configuration outside 1-12"""

    def __init__(self, month: object):
        super().__init__(f"Month must be an integer in 1-12, got {month!r}")
        self.month = month


class InvalidTenorError(DomainException):
    """Installment tenor is non-positive"""

    pass


class TenorExhaustedError(InvalidTenorError):
    """Every installment of the tenor has already been paid"""

    pass


class InvalidFrequencyError(DomainException):
    """Limit-increase cadence is not a positive number of months"""

    pass


class MissingMonthlyAmountError(DomainException):
    """Interest-bearing installment declared without the bank-quoted monthly amount"""

    pass


class InvalidExchangeRateError(DomainException):
    """Exchange rate is zero or negative"""

    pass


class CardNotFoundError(DomainException):
    """Referenced credit card does not exist in the snapshot"""

    pass
