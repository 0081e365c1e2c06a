"""serverhealth — host-health monitor with multi-provider chat alerts."""

__version__ = "1.0.0"
