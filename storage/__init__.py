"""storage/ -- SQLAlchemy-backed user directory and application registry.

Layer rule: storage/ imports from auth/models.py and auth/ports.py only.
It does NOT import from api/ or auth/service.py.
"""
