"""API Layer - HTTP surface over the application services."""
