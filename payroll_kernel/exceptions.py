"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll figures are paid out to people. An unparseable date or a corrupt
exchange rate must surface as a precise, catchable error rather than a
silently wrong payslip. Callers catch by type, read a stable ``code``,
and inspect structured attributes instead of parsing messages.

Example - RIGHT way:
    try:
        summary = compute_monthly_payroll(snapshot=snapshot, period=period)
    except InvalidDateError as e:
        api_response(code=e.code, field=e.field_name, value=e.raw_value)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- ComputationError
    |   +-- InvalidDateError
    |   +-- InvalidPayFrequencyError
    |   +-- InvalidRecordValueError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- InvalidExchangeRateError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- StaffNotReadyError
    |
    +-- AdjustmentError
    |   +-- MissingAdjustmentFieldError
    |   +-- InvalidAdjustmentError
    |
    +-- ReferenceDataError
        +-- ReferenceFeedUnavailableError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Computation     | INVALID_DATE                | Date/datetime input cannot be parsed
                | INVALID_PAY_FREQUENCY       | Pay frequency not recognised
----------------|-----------------------------|-----------------------------------------
Currency        | INVALID_CURRENCY            | Currency code is malformed
                | INVALID_EXCHANGE_RATE       | Rate is zero, negative or not numeric
----------------|-----------------------------|-----------------------------------------
Workflow        | INVALID_TRANSITION          | Status change not allowed from state
                | STAFF_NOT_READY             | Payroll run requested for non-Ready staff
----------------|-----------------------------|-----------------------------------------
Adjustment      | MISSING_ADJUSTMENT_FIELD    | Pay adjustment lacks amount/date/type
                | INVALID_ADJUSTMENT          | Adjustment kind not recognised
----------------|-----------------------------|-----------------------------------------
Reference data  | REFERENCE_FEED_UNAVAILABLE  | External feed failed (feeds fall back)

Absent optional data never raises: missing salary excludes the staff
member, a missing rate converts at 1, a missing start date gets the flat
allowance, and malformed requested-day counts contribute zero.
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Computation exceptions


class ComputationError(PayrollKernelError):
    """Base exception for structurally invalid computation input."""

    code: str = "COMPUTATION_ERROR"


class InvalidDateError(ComputationError):
    """A date or timestamp could not be interpreted."""

    code: str = "INVALID_DATE"

    def __init__(self, raw_value: object, field_name: str = "date"):
        self.raw_value = repr(raw_value)
        self.field_name = field_name
        super().__init__(f"Cannot parse {field_name} from {raw_value!r}")


class InvalidPayFrequencyError(ComputationError):
    """Pay frequency is not one of the supported values."""

    code: str = "INVALID_PAY_FREQUENCY"

    def __init__(self, frequency: object):
        self.frequency = repr(frequency)
        super().__init__(f"Unsupported pay frequency: {frequency!r}")


class InvalidRecordValueError(ComputationError):
    """A record field holds a value outside its fixed set (record type,
    absence type, approval status, request type)."""

    code: str = "INVALID_RECORD_VALUE"

    def __init__(self, field_name: str, raw_value: object):
        self.field_name = field_name
        self.raw_value = repr(raw_value)
        super().__init__(f"Unsupported {field_name}: {raw_value!r}")


# Currency exceptions


class CurrencyError(PayrollKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Malformed currency code provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: object):
        self.currency = repr(currency)
        super().__init__(f"Invalid currency code: {currency!r}")


class InvalidExchangeRateError(CurrencyError):
    """
    Exchange rate value is invalid (zero, negative, or not a number).

    A rate of zero would erase the converted amount and negative rates
    are meaningless.
    """

    code: str = "INVALID_EXCHANGE_RATE"

    def __init__(self, currency: str, rate_value: str, reason: str):
        self.currency = currency
        self.rate_value = rate_value
        self.reason = reason
        super().__init__(
            f"Invalid exchange rate for {currency}: {rate_value!r} ({reason})"
        )


# Workflow exceptions


class WorkflowError(PayrollKernelError):
    """Base exception for payroll status workflow errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """Requested status change is not defined from the current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, staff_id: str, from_state: str, action: str):
        self.staff_id = staff_id
        self.from_state = from_state
        self.action = action
        super().__init__(
            f"Action '{action}' is not allowed for staff {staff_id} "
            f"in state '{from_state}'"
        )


class StaffNotReadyError(WorkflowError):
    """Payroll was requested for a staff member that is not Ready."""

    code: str = "STAFF_NOT_READY"

    def __init__(self, staff_id: str, state: str):
        self.staff_id = staff_id
        self.state = state
        super().__init__(
            f"Staff {staff_id} is '{state}', only Ready staff can be paid"
        )


# Adjustment exceptions


class AdjustmentError(PayrollKernelError):
    """Base exception for pay-adjustment write path errors."""

    code: str = "ADJUSTMENT_ERROR"


class MissingAdjustmentFieldError(AdjustmentError):
    """A pay adjustment submission is missing a required field."""

    code: str = "MISSING_ADJUSTMENT_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Pay adjustment is missing required field '{field_name}'")


class InvalidAdjustmentError(AdjustmentError):
    """A pay adjustment names a record kind that does not exist."""

    code: str = "INVALID_ADJUSTMENT"

    def __init__(self, field_name: str, value: object):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Pay adjustment has invalid {field_name}: {value!r}")


# Reference data exceptions


class ReferenceDataError(PayrollKernelError):
    """Base exception for exchange-rate and public-holiday reference data."""

    code: str = "REFERENCE_DATA_ERROR"


class ReferenceFeedUnavailableError(ReferenceDataError):
    """An external reference feed could not be read."""

    code: str = "REFERENCE_FEED_UNAVAILABLE"

    def __init__(self, feed: str, reason: str):
        self.feed = feed
        self.reason = reason
        super().__init__(f"Reference feed '{feed}' unavailable: {reason}")
