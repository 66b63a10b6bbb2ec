"""Authentication dependencies for FastAPI routes.

Login itself happens elsewhere; these routes only read the user id it left in the session.
"""

from uuid import UUID

from fastapi import HTTPException, Request


def require_user_id(request: Request) -> UUID:
    """Return the logged-in user's id or raise 401."""
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Login required")
    try:
        return UUID(str(user_id))
    except ValueError:
        raise HTTPException(status_code=401, detail="Login required")
