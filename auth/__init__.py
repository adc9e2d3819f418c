"""auth/ -- Shared authentication and inter-service trust package.

Both services (products and orders) consume this package identically; they
differ only in which routes they protect and which peer they call.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or records/.
api/ imports from auth/, not the other way around.
"""
