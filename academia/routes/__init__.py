# Routes package init
"""
Academia API — Routes Package
==============================

Route Inventory:
    - students.py: /estudiantes CRUD (list, get, create, update, delete)
    - health.py:   GET /health (database probe)

Routes stay thin: they extract path and body, call StudentService and
return its result. Status codes for failures come from the exception
handlers registered in main.py.
"""
