"""
Services module.

- crud/: generic CRUD service layer, its ports and default adapters

Usage:
    from crud_api.services.crud import CrudService, EntityRegistry, SqlAlchemyPersistence
"""
