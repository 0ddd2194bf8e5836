"""
Spotibuds Media API

Clean Architecture structure:
- core/      - Application core (config, errors, interfaces, connectors, db guard/retry)
- common/    - Shared infrastructure (logging, monitoring)
- modules/   - Business modules (media serving)
- api/       - FastAPI routers
"""

__version__ = "1.0.0"
