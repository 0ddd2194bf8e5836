"""
Common - Shared infrastructure.

- logging/     - Structured logging and correlation IDs
- monitoring/  - Prometheus counters
"""
