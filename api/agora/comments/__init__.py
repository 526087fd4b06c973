"""Comments on posts: creation fan-out, thanks, retraction and
replies by email.

Note: Router is not exported here to avoid circular imports.
Import directly from agora.comments.router when needed.
"""
