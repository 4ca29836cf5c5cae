"""messages/ -- Direct-message relationship model for Courier.

Layer rule: messages/ may import from auth/ (the credential store and the
error taxonomy). It does NOT import from api/.
"""
