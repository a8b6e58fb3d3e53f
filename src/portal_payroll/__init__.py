"""Payroll reconciliation and revenue projection engine."""

__version__ = "0.1.0"
