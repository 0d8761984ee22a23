"""auth/ -- Authentication and authorization package for userhub.

Leaf-first: credentials (bcrypt) -> tokens (JWT) -> revocation (ledger)
-> gate (request filter). store.py owns the user records the login path reads.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/ -- configuration arrives through
constructors. api/ imports from auth/, not the other way around.
dependencies.py is the one FastAPI-aware module in this package.
"""
