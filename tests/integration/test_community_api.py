"""Integration tests for the community endpoints."""

import pytest

from config import COMMUNITY_TOPIC
from models.comment import CommentModel
from models.like import PostLikeModel

POST_BODY = {
    "title": "Bank Sampah RW 05",
    "content": "Mulai Senin kita buka bank sampah di balai warga.",
    "category": "environment",
    "tags": ["sampah", " daur-ulang ", ""],
}


@pytest.fixture
def create_post(client, auth_headers):
    def _create(user, **overrides):
        body = dict(POST_BODY)
        body.update(overrides)
        response = client.post("/api/community/posts", json=body, headers=auth_headers(user))
        assert response.status_code == 201
        return response.json()["data"]

    return _create


class TestCreatePost:
    """Tests for POST /api/community/posts."""

    def test_teacher_post_is_published_and_announced(
        self, client, teacher, auth_headers, notifier
    ):
        response = client.post(
            "/api/community/posts", json=POST_BODY, headers=auth_headers(teacher)
        )

        body = response.json()
        assert body["message"] == "Post created successfully"
        assert body["data"]["is_approved"] is True
        assert body["data"]["tags"] == ["sampah", "daur-ulang"]
        [(topic, message)] = notifier.topic_sends
        assert topic == COMMUNITY_TOPIC
        assert message.body == "Sari Wulandari: Bank Sampah RW 05"

    def test_member_post_waits_for_moderation(self, client, member, auth_headers, notifier):
        response = client.post(
            "/api/community/posts", json=POST_BODY, headers=auth_headers(member)
        )

        body = response.json()
        assert body["message"] == "Post created successfully and is waiting for moderation"
        assert body["data"]["is_approved"] is False
        assert notifier.topic_sends == []
        assert client.get("/api/community/posts").json()["data"] == []

    def test_too_many_tags(self, client, teacher, auth_headers):
        body = dict(POST_BODY, tags=[f"t{i}" for i in range(11)])

        response = client.post("/api/community/posts", json=body, headers=auth_headers(teacher))

        assert response.status_code == 400

    def test_unknown_category(self, client, teacher, auth_headers):
        body = dict(POST_BODY, category="gossip")

        response = client.post("/api/community/posts", json=body, headers=auth_headers(teacher))

        assert response.status_code == 400
        assert response.json()["data"][0]["field"] == "category"


class TestReadPosts:
    """Tests for listing and reading posts."""

    def test_pinned_posts_come_first(self, client, teacher, create_post, auth_headers):
        first = create_post(teacher, title="Pertama")
        create_post(teacher, title="Kedua")
        client.put(
            f"/api/community/posts/{first['post_id']}/moderate",
            json={"is_approved": True, "is_pinned": True},
            headers=auth_headers(teacher),
        )

        titles = [p["title"] for p in client.get("/api/community/posts").json()["data"]]

        assert titles[0] == "Pertama"

    def test_filters(self, client, teacher, create_post):
        create_post(teacher, title="Lomba Menanam", category="announcement", tags=["lomba"])
        create_post(teacher, title="Diskusi Kompos", category="discussion", tags=["kompos"])

        by_category = client.get("/api/community/posts", params={"category": "discussion"})
        by_tag = client.get("/api/community/posts", params={"tag": "lomba"})
        by_search = client.get("/api/community/posts", params={"search": "KOMPOS"})

        assert [p["title"] for p in by_category.json()["data"]] == ["Diskusi Kompos"]
        assert [p["title"] for p in by_tag.json()["data"]] == ["Lomba Menanam"]
        assert [p["title"] for p in by_search.json()["data"]] == ["Diskusi Kompos"]

    def test_reading_counts_views(self, client, teacher, create_post):
        post = create_post(teacher)

        client.get(f"/api/community/posts/{post['post_id']}")
        data = client.get(f"/api/community/posts/{post['post_id']}").json()["data"]

        assert data["views"] == 2
        assert data["comments"] == []

    def test_pending_post_is_hidden(self, client, member, create_post):
        post = create_post(member)

        response = client.get(f"/api/community/posts/{post['post_id']}")

        assert response.status_code == 404

    def test_my_posts_include_pending(self, client, member, create_post, auth_headers):
        create_post(member)

        response = client.get("/api/community/my-posts", headers=auth_headers(member))

        body = response.json()
        assert body["pagination"]["total"] == 1
        assert body["data"][0]["is_approved"] is False


class TestUpdateDeletePost:
    """Tests for editing and deleting posts."""

    def test_non_owner_cannot_edit(self, client, teacher, member, create_post, auth_headers):
        post = create_post(teacher)

        response = client.put(
            f"/api/community/posts/{post['post_id']}",
            json={"title": "Diubah"},
            headers=auth_headers(member),
        )

        assert response.status_code == 403

    def test_non_owner_cannot_delete(self, client, member, make_user, create_post, auth_headers):
        post = create_post(member)
        neighbour = make_user("masyarakat", full_name="Tono Tetangga")

        response = client.delete(
            f"/api/community/posts/{post['post_id']}", headers=auth_headers(neighbour)
        )

        assert response.status_code == 403
        assert response.json()["message"] == "You can only delete your own posts"
        mine = client.get("/api/community/my-posts", headers=auth_headers(member)).json()
        assert [p["post_id"] for p in mine["data"]] == [post["post_id"]]

    def test_blank_title_is_rejected_on_update(self, client, teacher, create_post, auth_headers):
        post = create_post(teacher)

        response = client.put(
            f"/api/community/posts/{post['post_id']}",
            json={"title": "   "},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 400
        assert response.json()["data"][0]["field"] == "title"
        current = client.get(f"/api/community/posts/{post['post_id']}").json()["data"]
        assert current["title"] == "Bank Sampah RW 05"

    def test_update_trims_title(self, client, teacher, create_post, auth_headers):
        post = create_post(teacher)

        response = client.put(
            f"/api/community/posts/{post['post_id']}",
            json={"title": "  Bank Sampah RW 06  "},
            headers=auth_headers(teacher),
        )

        assert response.json()["data"]["title"] == "Bank Sampah RW 06"

    def test_member_edit_returns_post_to_moderation(
        self, client, teacher, member, create_post, auth_headers
    ):
        post = create_post(member)
        client.put(
            f"/api/community/posts/{post['post_id']}/moderate",
            json={"is_approved": True},
            headers=auth_headers(teacher),
        )

        response = client.put(
            f"/api/community/posts/{post['post_id']}",
            json={"content": "Isi baru"},
            headers=auth_headers(member),
        )

        assert response.json()["data"]["is_approved"] is False

    def test_teacher_may_delete_any_post(
        self, client, teacher, member, create_post, auth_headers
    ):
        post = create_post(member)

        response = client.delete(
            f"/api/community/posts/{post['post_id']}", headers=auth_headers(teacher)
        )

        assert response.json()["message"] == "Post deleted successfully"
        assert client.get("/api/community/my-posts", headers=auth_headers(member)).json()[
            "data"
        ] == []


class TestLikes:
    """Tests for the like toggles."""

    def test_like_toggles(self, client, teacher, student, create_post, auth_headers):
        post = create_post(teacher)
        url = f"/api/community/posts/{post['post_id']}/like"

        liked = client.post(url, headers=auth_headers(student)).json()
        unliked = client.post(url, headers=auth_headers(student)).json()

        assert liked["message"] == "Post liked"
        assert liked["data"] == {"is_liked": True, "like_count": 1}
        assert unliked["data"] == {"is_liked": False, "like_count": 0}

    def test_listing_marks_own_like(self, client, teacher, student, create_post, auth_headers):
        post = create_post(teacher)
        client.post(
            f"/api/community/posts/{post['post_id']}/like", headers=auth_headers(student)
        )

        mine = client.get("/api/community/posts", headers=auth_headers(student)).json()
        theirs = client.get("/api/community/posts", headers=auth_headers(teacher)).json()

        assert mine["data"][0]["is_liked_by_user"] is True
        assert mine["data"][0]["like_count"] == 1
        assert theirs["data"][0]["is_liked_by_user"] is False

    def test_cannot_like_pending_post(self, client, member, create_post, auth_headers):
        post = create_post(member)

        response = client.post(
            f"/api/community/posts/{post['post_id']}/like", headers=auth_headers(member)
        )

        assert response.status_code == 404


class TestComments:
    """Tests for comments and replies."""

    def test_comment_notifies_post_author(
        self, client, teacher, student, create_post, auth_headers, notifier
    ):
        post = create_post(teacher)
        client.post(
            "/api/notifications/devices",
            json={"token": "fcm-sari"},
            headers=auth_headers(teacher),
        )

        response = client.post(
            f"/api/community/posts/{post['post_id']}/comments",
            json={"text": "Saya ikut, Bu!"},
            headers=auth_headers(student),
        )

        assert response.status_code == 201
        assert response.json()["data"]["is_approved"] is False
        [(tokens, message)] = notifier.device_sends
        assert tokens == ["fcm-sari"]
        assert message.title == "Komentar Baru"

    def test_own_comment_does_not_notify(
        self, client, teacher, create_post, auth_headers, notifier
    ):
        post = create_post(teacher)

        client.post(
            f"/api/community/posts/{post['post_id']}/comments",
            json={"text": "Catatan tambahan"},
            headers=auth_headers(teacher),
        )

        assert notifier.device_sends == []

    def test_replies_are_one_level_deep(self, client, teacher, create_post, auth_headers):
        post = create_post(teacher)
        url = f"/api/community/posts/{post['post_id']}/comments"
        top = client.post(url, json={"text": "Atas"}, headers=auth_headers(teacher)).json()
        reply = client.post(
            url,
            json={"text": "Balasan", "parent_comment": top["data"]["comment_id"]},
            headers=auth_headers(teacher),
        ).json()

        nested = client.post(
            url,
            json={"text": "Terlalu dalam", "parent_comment": reply["data"]["comment_id"]},
            headers=auth_headers(teacher),
        )

        assert reply["data"]["parent_comment_id"] == top["data"]["comment_id"]
        assert nested.status_code == 400

    def test_only_approved_comments_are_shown(
        self, client, teacher, student, create_post, auth_headers
    ):
        post = create_post(teacher)
        url = f"/api/community/posts/{post['post_id']}/comments"
        pending = client.post(url, json={"text": "Menunggu"}, headers=auth_headers(student))
        client.post(url, json={"text": "Langsung tampil"}, headers=auth_headers(teacher))

        before = client.get(f"/api/community/posts/{post['post_id']}").json()["data"]
        client.put(
            f"/api/community/comments/{pending.json()['data']['comment_id']}/moderate",
            json={"is_approved": True},
            headers=auth_headers(teacher),
        )
        after = client.get(f"/api/community/posts/{post['post_id']}").json()["data"]

        assert [c["text"] for c in before["comments"]] == ["Langsung tampil"]
        assert before["comment_count"] == 1
        assert len(after["comments"]) == 2

    def test_comment_like_and_delete(
        self, client, teacher, student, create_post, auth_headers, db_session
    ):
        post = create_post(teacher)
        comment = client.post(
            f"/api/community/posts/{post['post_id']}/comments",
            json={"text": "Setuju"},
            headers=auth_headers(teacher),
        ).json()["data"]

        liked = client.post(
            f"/api/community/comments/{comment['comment_id']}/like",
            headers=auth_headers(student),
        ).json()
        forbidden = client.delete(
            f"/api/community/comments/{comment['comment_id']}",
            headers=auth_headers(student),
        )
        deleted = client.delete(
            f"/api/community/comments/{comment['comment_id']}",
            headers=auth_headers(teacher),
        )

        assert liked["data"] == {"is_liked": True, "like_count": 1}
        assert forbidden.status_code == 403
        assert deleted.status_code == 200
        db_session.expire_all()
        assert db_session.query(CommentModel).count() == 0


class TestModeration:
    """Tests for the moderation queue."""

    def test_pending_queue_and_approval(
        self, client, teacher, member, create_post, auth_headers
    ):
        post = create_post(member)

        queue = client.get(
            "/api/community/moderation/pending", headers=auth_headers(teacher)
        ).json()
        response = client.put(
            f"/api/community/posts/{post['post_id']}/moderate",
            json={"is_approved": True, "moderation_note": "Bagus"},
            headers=auth_headers(teacher),
        )

        assert [p["post_id"] for p in queue["data"]] == [post["post_id"]]
        assert response.json()["data"]["moderation_note"] == "Bagus"
        listed = client.get("/api/community/posts").json()["data"]
        assert [p["post_id"] for p in listed] == [post["post_id"]]

    def test_members_cannot_moderate(self, client, member, create_post, auth_headers):
        post = create_post(member)

        queue = client.get("/api/community/moderation/pending", headers=auth_headers(member))
        moderate = client.put(
            f"/api/community/posts/{post['post_id']}/moderate",
            json={"is_approved": True},
            headers=auth_headers(member),
        )

        assert queue.status_code == 403
        assert moderate.status_code == 403


def test_deleting_post_removes_likes(
    client, teacher, student, create_post, auth_headers, db_session
):
    post = create_post(teacher)
    client.post(f"/api/community/posts/{post['post_id']}/like", headers=auth_headers(student))

    client.delete(f"/api/community/posts/{post['post_id']}", headers=auth_headers(teacher))

    db_session.expire_all()
    assert db_session.query(PostLikeModel).count() == 0
