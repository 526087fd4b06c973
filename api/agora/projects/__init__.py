"""Projects, contributor membership and the project access policy."""
