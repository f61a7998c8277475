"""Core infrastructure: configuration, logging, tracing, cache and database."""
