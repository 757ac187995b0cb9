"""
RR Nagar Backend — Middleware Package
=======================================

Execution order for a request (outermost first):
    Session → RequestID → RequestLogging → GZip → CORS → route

SessionMiddleware is outermost so the logging middleware can read the
identity kind from the decoded session.
"""
