"""auth/ -- Accounts, password hashing, bearer tokens and role gates for campusnav.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, web/, or campus/.
api/ imports from auth/, not the other way around.
"""
