"""
Payroll Modules.

Thin orchestration layers over the Payroll Kernel and Engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Configuration schemas (policy and settings)
- A command-layer service and its ledger persistence

Modules:
- Staff pay: monthly pay summaries, payroll runs, manual adjustments

Actual calculation logic lives in the engines.
"""

from payroll_modules import staff_pay

__all__ = ["staff_pay"]
