"""Monitoring and Logging.

Central logging setup for the CLI.
Bounded Context: Observability
"""
