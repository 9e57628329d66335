"""auth/ -- Authentication, authorization and password recovery for Shopkeep.

Layer rule: auth/ imports only stdlib + third-party libraries (and core/ for
type hints on Settings). It does NOT import from api/ or shop/.
api/ imports from auth/, not the other way around.
"""
