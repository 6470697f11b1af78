# Services package init
"""
Academia API — Services Layer
==============================

Business logic between routes (HTTP) and the ORM (persistence).

Service Inventory:
    - StudentService: CRUD over the `estudiantes` table, translating
      database failures into the application exception hierarchy
"""
