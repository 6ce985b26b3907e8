"""Core services: configuration, logging and the approval engine."""
