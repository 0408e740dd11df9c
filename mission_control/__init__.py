"""Mission Control backend: workspaces, wiki, RBAC and invites."""
