"""Core cross-cutting infrastructure: configuration and correlation ids."""
