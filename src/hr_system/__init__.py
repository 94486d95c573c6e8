"""HR management service: institutions, employees, payroll, advances and leave."""

__version__ = "0.1.0"
