"""Delivery dispatch record service: create, read and dispatch delivery requests."""

__version__ = "1.0.0"
