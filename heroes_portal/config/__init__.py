"""Configuration - Environment-driven settings."""
