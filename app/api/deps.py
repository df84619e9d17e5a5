"""
FastAPI dependencies (DB session, current owner)
"""
from fastapi import Request, HTTPException, status

from app.infrastructure.db.session import get_db as _get_db


# Re-export get_db for convenience
get_db = _get_db


def get_current_owner(request: Request) -> int:
    """
    Owner (account id) of the current session.

    The login flow lives in the authentication service; it stores the user
    id in the signed session cookie.

    Raises:
        HTTPException(401): no authenticated session

    Usage:
        @router.get("/budgets")
        def list_budgets(owner: int = Depends(get_current_owner)):
            ...
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return int(user_id)
