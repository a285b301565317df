"""auth/ -- Authentication and session-token package for Chirpy.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/, core/, or chirps/. Secrets arrive as
constructor arguments, never from configuration globals.
api/ imports from auth/, not the other way around.
"""
