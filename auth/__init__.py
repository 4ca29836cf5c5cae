"""
auth/ -- Identity, credential and authorization package for Courier.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/, core/, or messages/ at runtime.
api/ imports from auth/, not the other way around.
"""
