"""Workload generation and load driving for serverless function platforms."""

__version__ = "0.1.0"