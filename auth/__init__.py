"""auth/ -- Authentication and session handling for the issue tracker.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, web/, issues/, or cache/.
api/, web/ and issues/ import from auth/, not the other way around.
"""
