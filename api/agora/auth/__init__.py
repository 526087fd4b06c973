"""Users, access tokens and OAuth login.

Note: Router is not exported here to avoid circular imports.
Import directly from agora.auth.router when needed.
"""
