"""Opportunity pipeline boards: stage catalogs, drag transactions, sync and urgency."""

__version__ = "0.1.0"
