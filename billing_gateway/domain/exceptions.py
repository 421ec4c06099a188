"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidDateError(DomainException):
    """Date is unparseable or not a valid calendar date"""

    pass


class ZeroOrNegativeTotalError(DomainException):
    """Total amount must be strictly positive to be split"""

    pass


class InvalidInstallmentCountError(DomainException):
    """Installment count is outside the allowed range"""

    pass


class InvalidPeriodicityError(DomainException):
    """Periodicity cannot be used for automatic generation"""

    pass


class NoBracketMatchError(DomainException):
    """No bracket covers the requested usage count (recoverable)"""

    pass


class UnbalancedScheduleError(DomainException):
    """Schedule percentages/amounts do not reconcile with the total"""

    pass


class ScheduleRowNotFoundError(DomainException):
    """Row index does not exist in the schedule"""

    pass


class ScheduleStateError(DomainException):
    """Operation not allowed in the current session state"""

    pass


class ContractNotFoundError(DomainException):
    """Contract is unknown to the ledger"""

    pass


class LedgerError(DomainException):
    """Ledger service returned an error or is unavailable"""

    pass
