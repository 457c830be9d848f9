"""auth/ -- Authentication and authorization package for the design portal.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or designs/.
api/ imports from auth/, not the other way around.
"""
