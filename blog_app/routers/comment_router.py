# blog_app/routers/comment_router.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from blog_app.database import get_db
from blog_app.auth import get_current_user
from blog_app.models.blog_post import BlogPost
from blog_app.models.comment import Comment
from blog_app.models.user import User
from blog_app.schemas.comment_schema import CommentCreate, CommentOut

router = APIRouter(tags=["Comments"])


def serialize_comment(comment: Comment) -> CommentOut:
    return CommentOut(
        id=comment.id,
        post_id=comment.post_id,
        author_id=comment.author_id,
        author_name=comment.author.name if comment.author else None,
        content=comment.content,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def get_post_or_404(db: Session, post_id: str) -> BlogPost:
    post = db.query(BlogPost).filter(BlogPost.id == post_id).first()
    if not post:
        raise HTTPException(404, "Post not found")
    return post


# --------------------------------------------------
# LIST COMMENTS
# --------------------------------------------------

@router.get("/posts/{post_id}/comments", response_model=list[CommentOut])
def list_comments(post_id: str, db: Session = Depends(get_db)):
    get_post_or_404(db, post_id)

    comments = (
        db.query(Comment)
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc())
        .all()
    )
    return [serialize_comment(c) for c in comments]


# --------------------------------------------------
# CREATE COMMENT
# --------------------------------------------------

@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentOut,
    status_code=201,
)
def create_comment(
    post_id: str,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_post_or_404(db, post_id)

    comment = Comment(
        post_id=post_id,
        author_id=current_user.id,
        content=payload.content,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return serialize_comment(comment)


# --------------------------------------------------
# DELETE COMMENT (AUTHOR OR ADMIN)
# --------------------------------------------------

@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment:
        raise HTTPException(404, "Comment not found")

    if not (current_user.is_admin or comment.author_id == current_user.id):
        raise HTTPException(403, "Cannot delete this comment")

    db.delete(comment)
    db.commit()

    return {"status": "deleted"}
