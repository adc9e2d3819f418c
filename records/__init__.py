"""records/ -- In-memory business records (products and orders).

Layer rule: records/ imports only stdlib. It does NOT import from api/, auth/,
or core/. Route handlers in api/ map between these dataclasses and the
Pydantic wire models.
"""
