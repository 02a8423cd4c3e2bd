"""SAFE Gate - risk-gated approval workflow for counterparty risk actions."""

__version__ = "0.1.0"
