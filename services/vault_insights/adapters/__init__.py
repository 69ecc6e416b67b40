"""
Adapters - Implementations of ports for external systems.

Adapters connect the insights core to the outside world:
- HTTP (data-management vault API)
- Fixture (deterministic demo / QA data)
"""
