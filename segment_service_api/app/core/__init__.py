"""Configuration, logging, database bootstrap and shared error types."""
