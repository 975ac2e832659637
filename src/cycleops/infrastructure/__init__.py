"""Adapters for stores, the payment gateway, retries and metrics."""
