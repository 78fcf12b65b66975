"""Round endpoints: posting scores, round pages, reactions and comments."""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from pydantic import ValidationError

from models import Comment, CommentView, ReactionToggle, ReactionType, Round, RoundView, ScoreSubmission
from database.db_manager import DatabaseManager
from database.exceptions import IntegrityError, NotFoundError, PermissionDeniedError
from feed.service import load_round, load_user_rounds_page
from media.exceptions import (
    ImageDecodeError,
    ImageTooLargeError,
    StorageError,
    UnsupportedImageTypeError,
)
from media.uploads import upload_round_photo
from api.dependencies import get_current_user_id, get_db, get_round_photo_storage, get_viewer_id
from api.schemas import CommentRequest, ReactionRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _validation_detail(e: ValidationError):
    return e.errors(include_url=False, include_context=False)


@router.post("", response_model=Round, status_code=201)
async def create_round(
    request: Request,
    submission: str = Form(...),
    photo: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    """Post a round. `submission` is the score form as JSON; `photo` is optional."""
    try:
        score = ScoreSubmission.model_validate_json(submission)
    except ValidationError as e:
        raise HTTPException(422, _validation_detail(e))

    photo_url = None
    if photo is not None and photo.filename:
        storage = get_round_photo_storage(request)
        data = await photo.read()
        try:
            photo_url = await upload_round_photo(storage, user_id, data, photo.filename)
        except (ImageDecodeError, UnsupportedImageTypeError) as e:
            raise HTTPException(400, str(e))
        except ImageTooLargeError as e:
            raise HTTPException(413, str(e))
        except StorageError as e:
            raise HTTPException(502, f"Photo upload failed: {e}")

    try:
        created = await db.rounds.create_round(score.to_round(user_id, photo_url=photo_url))
    except IntegrityError as e:
        raise HTTPException(400, str(e))
    logger.info("User %s posted round %s", user_id, created.id)
    return created


@router.get("/user/{user_id}", response_model=List[RoundView])
async def get_rounds_for_user(
    user_id: str,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    db: DatabaseManager = Depends(get_db),
):
    return await load_user_rounds_page(db, user_id, viewer_id, limit=limit, offset=offset)


@router.get("/{round_id}", response_model=RoundView)
async def get_round(
    round_id: str,
    viewer_id: Optional[str] = Depends(get_viewer_id),
    db: DatabaseManager = Depends(get_db),
):
    view = await load_round(db, round_id, viewer_id)
    if view is None:
        raise HTTPException(404, "Round not found")
    return view


@router.delete("/{round_id}", status_code=204)
async def delete_round(
    round_id: str,
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    try:
        await db.rounds.delete_round(round_id, user_id)
    except NotFoundError:
        raise HTTPException(404, "Round not found")
    except PermissionDeniedError as e:
        raise HTTPException(403, str(e))


# ================================================================
# Reactions
# ================================================================

@router.get("/{round_id}/reactions", response_model=Dict[ReactionType, int])
async def get_reaction_counts(round_id: str, db: DatabaseManager = Depends(get_db)):
    return await db.reactions.get_reaction_counts(round_id)


@router.post("/{round_id}/reactions", response_model=ReactionToggle)
async def toggle_reaction(
    round_id: str,
    req: ReactionRequest,
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    """Add the reaction, or remove it if the user already gave it."""
    try:
        return await db.reactions.toggle_reaction(user_id, round_id, req.reaction_type)
    except NotFoundError:
        raise HTTPException(404, "Round not found")


# ================================================================
# Comments
# ================================================================

@router.post("/{round_id}/comments", response_model=CommentView, status_code=201)
async def add_comment(
    round_id: str,
    req: CommentRequest,
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    try:
        comment = Comment(round_id=round_id, user_id=user_id, content=req.text)
    except ValidationError as e:
        raise HTTPException(422, _validation_detail(e))
    try:
        saved = await db.comments.add_comment(comment)
    except NotFoundError:
        raise HTTPException(404, "Round not found")
    return CommentView.from_comment(saved)
