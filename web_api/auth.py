"""
Learner identification.

Authentication happens upstream; requests carry the learner id in the
X-Learner-Id header.
"""

from fastapi import Header, HTTPException


async def get_learner_id(x_learner_id: str | None = Header(None)) -> str:
    """FastAPI dependency: the calling learner's id, or 401."""
    if not x_learner_id or not x_learner_id.strip():
        raise HTTPException(401, "Authentication required")
    return x_learner_id.strip()
