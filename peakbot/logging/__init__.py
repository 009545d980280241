"""
Logging module.

Centralized structlog configuration shared by every component of the engine.
"""
