"""api/ -- HTTP layer: app factories, wire models, routes, and the peer client.

Layer rule: api/ may import from auth/, core/, and records/. Nothing imports
from api/ except main.py and tests.
"""
