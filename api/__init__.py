"""PEPL stdlib HTTP API."""
