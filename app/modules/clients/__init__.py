"""
Clients module

Customers that invoices are billed to. Every client belongs to one company
(tenant_id) and is only visible inside that company.

Components:
- models.py: Client SQLAlchemy model
- schemas.py: Pydantic schemas for input and output
- service.py: ClientService with CRUD and search
- router.py: REST endpoints under /clients
- tests.py: unit and API tests
"""
