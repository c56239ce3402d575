"""Staff Payroll Workflows.

State machine for one staff member's payroll in one month:
Pending -> Ready -> Paid, with Paid -> Pending as an explicit revert.
"""

from payroll_kernel.domain.workflow import Guard, Transition, Workflow
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.models import PayrollStatus

logger = get_logger("modules.staff_pay.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

HAS_POSITIVE_SALARY = Guard(
    name="has_positive_salary",
    description="Staff member has a configured positive base salary",
    check=lambda summary: summary.monthly_base_salary > 0,
)

NO_SALARY_RECORD = Guard(
    name="no_salary_record",
    description="No salary record has been posted for the month yet",
    check=lambda summary: not summary.has_salary_record,
)

SALARY_RECORD_EXISTS = Guard(
    name="salary_record_exists",
    description="A salary record was posted for the month",
    check=lambda summary: summary.has_salary_record,
)

logger.info(
    "staff_payroll_workflow_guards_defined",
    extra={
        "guards": [
            HAS_POSITIVE_SALARY.name,
            NO_SALARY_RECORD.name,
            SALARY_RECORD_EXISTS.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Staff Payroll Workflow
# -----------------------------------------------------------------------------

PENDING = PayrollStatus.PENDING.value
READY = PayrollStatus.READY.value
PAID = PayrollStatus.PAID.value

MARK_READY = "mark_ready"
UNMARK_READY = "unmark_ready"
RUN_PAYROLL = "run_payroll"
REVERT = "revert"

STAFF_PAYROLL_WORKFLOW = Workflow(
    name="staff_payroll",
    description="Per staff member, per month payroll status",
    initial_state=PENDING,
    states=(PENDING, READY, PAID),
    transitions=(
        Transition(PENDING, READY, action=MARK_READY, guard=HAS_POSITIVE_SALARY),
        Transition(READY, PENDING, action=UNMARK_READY),
        Transition(
            READY, PAID, action=RUN_PAYROLL, guard=NO_SALARY_RECORD, posts_entry=True,
        ),
        Transition(PAID, PENDING, action=REVERT, guard=SALARY_RECORD_EXISTS),
    ),
)

logger.info(
    "staff_payroll_workflow_defined",
    extra={
        "workflow": STAFF_PAYROLL_WORKFLOW.name,
        "states": list(STAFF_PAYROLL_WORKFLOW.states),
        "transitions": len(STAFF_PAYROLL_WORKFLOW.transitions),
    },
)
