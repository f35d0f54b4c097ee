"""users/ -- Domain model and in-memory store for the User resource.

Layer rule: users/ imports only stdlib. It does NOT import from api/ or core/.
api/ imports from users/, not the other way around.
"""
