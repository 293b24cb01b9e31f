"""
Test Suite

Tests for the helpdesk workflow service. Every test gets a fresh mongomock
database (see conftest.py).

Structure:
    tests/
    ├── conftest.py         # Fixtures: database, object factory, app client
    ├── unit/
    │   ├── test_engine/    # Rule matching, resolution, approval state, engine flows
    │   └── test_services/  # Rate limiter, notifications, rules, teams, audit, tickets
    └── integration/
        └── test_api/       # HTTP endpoints through FastAPI's TestClient

To run tests:
    pytest tests/
    pytest tests/unit/
    pytest tests/integration/
"""
