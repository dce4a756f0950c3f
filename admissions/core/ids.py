"""Identifier helpers."""

import uuid


def generate_node_id() -> str:
    """Generate a new tree node id."""
    return uuid.uuid4().hex[:12]
