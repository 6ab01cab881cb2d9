"""Identifier generation for entities nested inside goal documents."""
import uuid


def new_id() -> str:
    """Return a random identifier for a milestone, metric, routine or reflection."""
    return str(uuid.uuid4())
