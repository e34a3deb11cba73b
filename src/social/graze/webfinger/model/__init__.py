"""
Data Model

This package holds the in-memory state of the service.

Key Components:
- store.py: ConfigStore, the immutable configuration Snapshot and configuration errors
- health.py: HealthGauge used by readiness probes
"""
