"""Tests for post create/update and the delete cascade."""

import os
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from blog_app.core import post_lifecycle
from blog_app.core.post_lifecycle import (
    DeleteSummary,
    delete_post_cascade,
    slugify,
    update_post,
)
from blog_app.models.blog_post import BlogPost, PostImageReference
from blog_app.models.comment import Comment
from blog_app.models.content_image import ContentImage
from blog_app.schemas.blog_post_schema import PostUpdate

from conftest import asset_url


EXAMPLE_BODY = (
    "![cover](http://host/uploads/a.png) text "
    "<img src='http://host/uploads/b.png'>"
)


# ---------------------------------------------------------------------------
# Create / update
# ---------------------------------------------------------------------------

def test_slugify():
    assert slugify("Hello World: Part 2!") == "hello_world_part_2"
    assert slugify("Café au lait") == "caf_au_lait"


def test_create_stores_associated_images(make_post):
    post = make_post(content=EXAMPLE_BODY, cover=asset_url("a.png"), title="My Post")

    assert post.slug == "my_post"
    assert post.associated_images == ["a.png", "b.png"]


def test_create_uses_custom_url_as_slug(make_post):
    post = make_post(title="Anything", custom_url="custom-slug")
    assert post.slug == "custom-slug"


def test_duplicate_slug_is_a_conflict(make_post):
    make_post(title="Same")
    with pytest.raises(HTTPException) as exc:
        make_post(title="Same")
    assert exc.value.status_code == 409


def test_update_content_keeps_existing_cover(db, make_post):
    post = make_post(content="", cover=asset_url("cover.png"))

    update_post(db, post, PostUpdate(content=f"![n]({asset_url('new.png')})"))

    assert post.associated_images == ["cover.png", "new.png"]


def test_update_cover_keeps_existing_content(db, make_post):
    post = make_post(content=f"![b]({asset_url('body.png')})", cover=asset_url("old.png"))

    update_post(db, post, PostUpdate(cover_image_url=asset_url("new.png")))

    assert post.associated_images == ["new.png", "body.png"]


def test_update_explicit_null_cover_drops_it(db, make_post):
    post = make_post(content=f"![b]({asset_url('body.png')})", cover=asset_url("old.png"))

    update_post(db, post, PostUpdate.model_validate({"cover_image_url": None}))

    assert post.cover_image_url is None
    assert post.associated_images == ["body.png"]


def test_update_without_image_fields_leaves_references(db, make_post):
    post = make_post(content=f"![b]({asset_url('body.png')})")

    update_post(db, post, PostUpdate(is_draft=True, tags=["x"]))

    assert post.is_draft is True
    assert post.tags == ["x"]
    assert post.associated_images == ["body.png"]


def test_update_title_recomputes_slug(db, make_post):
    post = make_post(title="Old Title")

    update_post(db, post, PostUpdate(title="New Title"))
    assert post.slug == "new_title"

    update_post(db, post, PostUpdate(title="Whatever", custom_url="chosen"))
    assert post.slug == "chosen"


def test_update_replaces_reference_rows(db, make_post):
    post = make_post(content=f"![a]({asset_url('a.png')}) ![b]({asset_url('b.png')})")

    update_post(db, post, PostUpdate(content=f"![b]({asset_url('b.png')})"))

    rows = db.query(PostImageReference).filter(PostImageReference.post_id == post.id).all()
    assert [r.filename for r in rows] == ["b.png"]


def test_update_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        PostUpdate.model_validate({"associated_images": ["evil.png"]})
    with pytest.raises(ValidationError):
        PostUpdate.model_validate({"views": 1000})


# ---------------------------------------------------------------------------
# Delete cascade
# ---------------------------------------------------------------------------

def test_minimal_delete_reports_base_message(db, make_post, upload_dir):
    post = make_post(content="no images here")
    post_id = post.id

    summary = delete_post_cascade(db, post)

    assert summary.as_response() == {"message": "Post deleted"}
    assert db.query(BlogPost).filter(BlogPost.id == post_id).first() is None


def test_end_to_end_reclaims_unshared_images(db, make_post, make_image, upload_dir):
    make_image("a.png")
    make_image("b.png")
    make_image("unrelated.png")

    p = make_post(content=EXAMPLE_BODY, cover=asset_url("a.png"))
    q = make_post(content=f"![u]({asset_url('unrelated.png')}) ![a]({asset_url('a.png')})")
    assert p.associated_images == ["a.png", "b.png"]

    q_summary = delete_post_cascade(db, q)
    # a.png is still on P; unrelated.png only lived on Q
    assert q_summary.unused_images == ["unrelated.png"]
    assert (upload_dir / "a.png").exists()

    response = delete_post_cascade(db, p).as_response()

    assert response == {
        "message": "Post deleted",
        "totalImages": 2,
        "imagesKept": 0,
        "contentImagesDeleted": 2,
        "filesDeleted": 2,
    }
    assert not (upload_dir / "a.png").exists()
    assert not (upload_dir / "b.png").exists()
    assert db.query(ContentImage).count() == 0
    assert db.query(BlogPost).count() == 0
    assert db.query(PostImageReference).count() == 0


def test_shared_image_survives(db, make_post, make_image, upload_dir):
    make_image("shared.png")
    make_image("mine.png")
    mine = make_post(content=f"![s]({asset_url('shared.png')}) ![m]({asset_url('mine.png')})")
    make_post(cover=asset_url("shared.png"))

    response = delete_post_cascade(db, mine).as_response()

    assert response["totalImages"] == 2
    assert response["imagesKept"] == 1
    assert response["filesDeleted"] == 1
    assert (upload_dir / "shared.png").exists()
    assert not (upload_dir / "mine.png").exists()
    assert [i.filename for i in db.query(ContentImage).all()] == ["shared.png"]


def test_partial_file_failure_still_deletes_post(db, make_post, make_image, upload_dir, monkeypatch):
    make_image("a.png")
    make_image("b.png")
    post = make_post(content=EXAMPLE_BODY, cover=asset_url("a.png"))
    post_id = post.id

    real_remove = os.remove

    def flaky_remove(path, *args, **kwargs):
        if str(path).endswith("b.png"):
            raise PermissionError(13, "Permission denied")
        return real_remove(path, *args, **kwargs)

    monkeypatch.setattr("blog_app.storage.os.remove", flaky_remove)

    response = delete_post_cascade(db, post).as_response()

    assert response["filesDeleted"] == 1
    assert response["fileCleanupWarnings"] == 1
    # error text stays in the logs
    assert all(not isinstance(v, list) for v in response.values())
    assert db.query(BlogPost).filter(BlogPost.id == post_id).first() is None
    assert (upload_dir / "b.png").exists()


def test_comments_are_purged_and_counted(db, make_post, author):
    post = make_post(content="")
    for text in ("first", "second"):
        db.add(Comment(post_id=post.id, author_id=author.id, content=text))
    db.commit()

    response = delete_post_cascade(db, post).as_response()

    assert response == {"message": "Post deleted", "commentsDeleted": 2}
    assert db.query(Comment).count() == 0


def test_comment_purge_failure_does_not_block(db, make_post, make_image, upload_dir, monkeypatch):
    make_image("a.png")
    post = make_post(cover=asset_url("a.png"))
    post_id = post.id

    def broken(session, pid):
        raise OperationalError("DELETE", {}, Exception("disk I/O error"))

    monkeypatch.setattr(post_lifecycle, "_purge_comments", broken)
    log = MagicMock()

    summary = delete_post_cascade(db, post, logger=log)

    assert summary.comments_deleted == 0
    assert summary.files_deleted == 1
    assert log.error.called
    assert db.query(BlogPost).filter(BlogPost.id == post_id).first() is None


def test_usage_check_failure_deletes_no_images(db, make_post, make_image, upload_dir, monkeypatch):
    make_image("a.png")
    post = make_post(cover=asset_url("a.png"))
    post_id = post.id

    def broken(*args, **kwargs):
        raise RuntimeError("store unreachable")

    monkeypatch.setattr(post_lifecycle, "find_unused_images", broken)

    response = delete_post_cascade(db, post).as_response()

    assert response == {"message": "Post deleted", "totalImages": 1, "imagesKept": 1}
    assert (upload_dir / "a.png").exists()
    assert db.query(ContentImage).count() == 1
    assert db.query(BlogPost).filter(BlogPost.id == post_id).first() is None


def test_metadata_purge_failure_still_reclaims_files(db, make_post, make_image, upload_dir, monkeypatch):
    make_image("a.png")
    post = make_post(cover=asset_url("a.png"))

    def broken(*args, **kwargs):
        raise OperationalError("DELETE", {}, Exception("locked"))

    monkeypatch.setattr(post_lifecycle, "delete_image_records", broken)

    response = delete_post_cascade(db, post).as_response()

    assert "contentImagesDeleted" not in response
    assert response["filesDeleted"] == 1
    assert not (upload_dir / "a.png").exists()


def test_reclaimer_crash_counts_every_file_as_warning(db, make_post, make_image, upload_dir, monkeypatch):
    make_image("a.png")
    make_image("b.png")
    post = make_post(content=EXAMPLE_BODY, cover=asset_url("a.png"))

    def broken(*args, **kwargs):
        raise RuntimeError("filesystem gone")

    monkeypatch.setattr(post_lifecycle, "delete_files", broken)

    response = delete_post_cascade(db, post).as_response()

    assert "filesDeleted" not in response
    assert response["fileCleanupWarnings"] == 2
    assert response["contentImagesDeleted"] == 2


def test_steps_run_in_order(db, make_post, make_image, upload_dir, monkeypatch):
    make_image("a.png")
    post = make_post(cover=asset_url("a.png"))
    order = []

    def wrap(name, fn):
        def inner(*args, **kwargs):
            order.append(name)
            return fn(*args, **kwargs)
        return inner

    for name in ("_purge_comments", "find_unused_images", "delete_image_records", "delete_files"):
        monkeypatch.setattr(post_lifecycle, name, wrap(name, getattr(post_lifecycle, name)))

    delete_post_cascade(db, post)

    assert order == ["_purge_comments", "find_unused_images", "delete_image_records", "delete_files"]


def test_post_delete_failure_propagates(db, make_post, monkeypatch):
    post = make_post(content="")

    def failing_commit():
        raise OperationalError("DELETE", {}, Exception("database unreachable"))

    # comment purge commits too; let the first commit through
    real_commit = db.commit
    calls = {"n": 0}

    def commit():
        calls["n"] += 1
        if calls["n"] == 1:
            return real_commit()
        return failing_commit()

    monkeypatch.setattr(db, "commit", commit)

    with pytest.raises(OperationalError):
        delete_post_cascade(db, post)


def test_summary_optional_fields():
    summary = DeleteSummary(
        comments_deleted=0,
        total_images=3,
        unused_images=["a.png"],
        content_images_deleted=1,
        files_deleted=0,
        file_cleanup_warnings=1,
    )
    assert summary.images_kept == 2
    assert summary.as_response() == {
        "message": "Post deleted",
        "totalImages": 3,
        "imagesKept": 2,
        "contentImagesDeleted": 1,
        "fileCleanupWarnings": 1,
    }


def test_missing_upload_dir_counts_every_file_as_warning(db, make_post, make_image, tmp_path):
    make_image("a.png")
    make_image("b.png")
    post = make_post(content=EXAMPLE_BODY, cover=asset_url("a.png"))
    post_id = post.id

    summary = delete_post_cascade(db, post, upload_dir=tmp_path / "not-there")

    assert summary.files_deleted == 0
    assert summary.file_cleanup_warnings == 2
    assert summary.content_images_deleted == 2
    assert db.query(BlogPost).filter(BlogPost.id == post_id).first() is None
