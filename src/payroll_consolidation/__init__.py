"""Payroll consolidation and adjustment engine."""

__version__ = "0.1.0"
