"""
Core - Application infrastructure.

- config/      - Settings and connector factories
- interfaces/  - Protocols for DI
- connectors/  - Cache, blob store and document store implementations
- db/          - Connection guard and retry executor
- errors.py    - Error taxonomy
"""
