"""HTTP API for git build contexts."""
