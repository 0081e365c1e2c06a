"""Configuration, logging and shared types."""
