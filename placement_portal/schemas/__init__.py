"""
Schemas module - Request/Response schemas for API endpoints.

Difference from models:
- Models: The Application aggregate as the workflow sees and stores it
- Schemas: API contract (what client sends/receives)
"""
