"""
CRUD service layer.

- services.crud: generic CRUD service, ports, input filters, paginator
- routers: FastAPI presentation adapter over CRUD services
- models: declarative base for mapped entities
"""
