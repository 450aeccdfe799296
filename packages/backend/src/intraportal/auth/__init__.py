"""Authentication and authorization.

Users register with email/password and receive JWT tokens. The same
access token authenticates REST calls (Authorization header) and the
real-time WebSocket handshake (?token= query param).
"""
