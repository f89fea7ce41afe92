"""Configuration Loading.

Layered settings from YAML, .env and environment variables.
Bounded Context: Configuration
"""
