"""Expose running EC2 instances as a load-balanced service."""

__version__ = "0.1.0"
