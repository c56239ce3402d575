"""
Payroll Kernel

Shared foundations for the staff payroll engine:
- Structured JSON logging
- Typed exception hierarchy with machine-readable codes
- Injectable clock
- Currency registry and calendar periods (month, holiday year)
- Workflow value objects and the SQLAlchemy declarative base
"""

__version__ = "0.1.0"
