from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from blog_app.database import get_db
from blog_app.auth import get_current_user, get_optional_user
from blog_app.core.post_lifecycle import (
    create_post,
    update_post,
    delete_post_cascade,
)
from blog_app.models.blog_post import BlogPost, PostLike
from blog_app.models.user import User
from blog_app.schemas.blog_post_schema import (
    PostCreate,
    PostUpdate,
    PostOut,
    PostDetailOut,
    PostListOut,
    PostCounts,
    LikeOut,
)


router = APIRouter(prefix="/posts", tags=["Blog Posts"])


# --------------------------------------------------
# HELPERS
# --------------------------------------------------

def get_post_or_404(db: Session, post_id: str) -> BlogPost:
    post = db.query(BlogPost).filter(BlogPost.id == post_id).first()
    if not post:
        raise HTTPException(404, "Post not found")
    return post


def can_modify(post: BlogPost, user: User) -> bool:
    return post.author_id == user.id or user.is_admin


# --------------------------------------------------
# CREATE POST
# --------------------------------------------------

@router.post("", response_model=PostOut, status_code=201)
def create(
    payload: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return create_post(db, payload, current_user)


# --------------------------------------------------
# LIST POSTS
# --------------------------------------------------

@router.get("", response_model=PostListOut)
def list_posts(
    status: str = "published",
    db: Session = Depends(get_db),
):
    if status not in ("published", "draft", "all"):
        raise HTTPException(400, "status must be published, draft or all")

    query = db.query(BlogPost)
    if status == "published":
        query = query.filter(BlogPost.is_draft.is_(False))
    elif status == "draft":
        query = query.filter(BlogPost.is_draft.is_(True))

    posts = query.order_by(BlogPost.updated_at.desc()).all()

    counts = PostCounts(
        all=db.query(BlogPost).count(),
        published=db.query(BlogPost).filter(BlogPost.is_draft.is_(False)).count(),
        draft=db.query(BlogPost).filter(BlogPost.is_draft.is_(True)).count(),
    )

    return PostListOut(
        posts=[PostOut.model_validate(p) for p in posts],
        total_count=len(posts),
        counts=counts,
    )


# --------------------------------------------------
# TRENDING
# --------------------------------------------------

@router.get("/trending", response_model=list[PostOut])
def trending_posts(db: Session = Depends(get_db)):
    return (
        db.query(BlogPost)
        .filter(BlogPost.is_draft.is_(False))
        .order_by(BlogPost.views.desc(), BlogPost.likes.desc())
        .limit(5)
        .all()
    )


# --------------------------------------------------
# GET BY SLUG
# --------------------------------------------------

@router.get("/{slug}", response_model=PostDetailOut)
def get_post_by_slug(
    slug: str,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    post = db.query(BlogPost).filter(BlogPost.slug == slug).first()
    if not post:
        raise HTTPException(404, "Post not found")

    liked = False
    if current_user:
        liked = (
            db.query(PostLike)
            .filter(PostLike.post_id == post.id, PostLike.user_id == current_user.id)
            .first()
            is not None
        )

    out = PostDetailOut.model_validate(post)
    out.liked_by_current_user = liked
    return out


# --------------------------------------------------
# UPDATE POST (AUTHOR OR ADMIN)
# --------------------------------------------------

@router.put("/{post_id}", response_model=PostOut)
def update(
    post_id: str,
    payload: PostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = get_post_or_404(db, post_id)

    if not can_modify(post, current_user):
        raise HTTPException(403, "Not authorized to update this post")

    return update_post(db, post, payload)


# --------------------------------------------------
# DELETE POST (AUTHOR OR ADMIN)
# --------------------------------------------------

@router.delete("/{post_id}")
def delete(
    post_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = get_post_or_404(db, post_id)

    if not can_modify(post, current_user):
        raise HTTPException(403, "Not authorized to delete this post")

    summary = delete_post_cascade(db, post)
    return summary.as_response()


# --------------------------------------------------
# VIEWS
# --------------------------------------------------

@router.put("/{post_id}/view")
def increment_view(post_id: str, db: Session = Depends(get_db)):
    updated = (
        db.query(BlogPost)
        .filter(BlogPost.id == post_id)
        .update({BlogPost.views: BlogPost.views + 1}, synchronize_session=False)
    )
    if not updated:
        raise HTTPException(404, "Post not found")

    db.commit()
    return {"message": "View count incremented"}


# --------------------------------------------------
# LIKE / UNLIKE
# --------------------------------------------------

@router.put("/{post_id}/like", response_model=LikeOut)
def toggle_like(
    post_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = get_post_or_404(db, post_id)

    existing = (
        db.query(PostLike)
        .filter(PostLike.post_id == post.id, PostLike.user_id == current_user.id)
        .first()
    )

    if existing:
        db.delete(existing)
        delta = -1
    else:
        db.add(PostLike(post_id=post.id, user_id=current_user.id))
        delta = 1

    db.query(BlogPost).filter(BlogPost.id == post.id).update(
        {BlogPost.likes: BlogPost.likes + delta}, synchronize_session=False
    )
    db.commit()
    db.refresh(post)

    return LikeOut(
        message="Post unliked successfully" if existing else "Post liked successfully",
        likes=post.likes,
        is_liked=not existing,
    )
