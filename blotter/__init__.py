"""Blotter -- record-keeping portal for law-enforcement role-play servers."""

__version__ = "0.1.0"
