"""Bare-metal host lifecycle decision engine.

The package configures no logging itself. The process that drives
reconciliation should call it once at startup:

    from metalhost.config import configure_logging, settings

    configure_logging(settings)
"""
