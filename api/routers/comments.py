"""Comment endpoints that address a comment directly."""

from fastapi import APIRouter, Depends, HTTPException

from database.db_manager import DatabaseManager
from database.exceptions import NotFoundError, PermissionDeniedError
from api.dependencies import get_current_user_id, get_db

router = APIRouter()


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: str,
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    try:
        await db.comments.delete_comment(comment_id, user_id)
    except NotFoundError:
        raise HTTPException(404, "Comment not found")
    except PermissionDeniedError as e:
        raise HTTPException(403, str(e))
