"""Test the REST and local post stores."""

import json
from unittest import mock

import pytest
import requests

from blog_engine.models import Post
from blog_engine.store import LocalPostStore, PostStoreError, RestPostStore, sort_posts


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def make_response(status_code=200, payload=None, text=None, headers=None):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.headers = headers or {}
    response.url = "https://example.supabase.co/rest/v1/posts"
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    response.text = text
    response.json.side_effect = lambda: json.loads(text)
    return response


def record(id_, title="T", date="2026-01-01T00:00:00.000Z", published=True, body="b"):
    return {"id": id_, "title": title, "body": body, "date": date, "published": published}


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def rest_store(session):
    return RestPostStore("https://example.supabase.co/", "key123", session=session, max_retries=2)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("blog_engine.store.time.sleep", lambda seconds: None)


# ------------------------------------------------------------------
# RestPostStore
# ------------------------------------------------------------------

def test_rest_list_published_posts(rest_store, session):
    session.request.return_value = make_response(payload=[record(2), record(1)])

    posts = rest_store.list_posts()

    assert [p.id for p in posts] == ["2", "1"]
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == "GET"
    assert url == "https://example.supabase.co/rest/v1/posts"
    assert kwargs["params"] == {"order": "date.desc", "published": "eq.true"}
    assert kwargs["headers"]["apikey"] == "key123"
    assert kwargs["headers"]["Authorization"] == "Bearer key123"
    assert "Prefer" not in kwargs["headers"]
    assert kwargs["timeout"] == 10.0


def test_rest_list_with_drafts_has_no_published_filter(rest_store, session):
    session.request.return_value = make_response(payload=[])

    rest_store.list_posts(include_drafts=True)

    assert session.request.call_args.kwargs["params"] == {"order": "date.desc"}


def test_rest_get_post(rest_store, session):
    session.request.return_value = make_response(payload=[record("abc", title="Hello")])

    post = rest_store.get_post("abc")

    assert post == Post(id="abc", title="Hello", body="b", date="2026-01-01T00:00:00.000Z", published=True)
    assert session.request.call_args.kwargs["params"] == {"id": "eq.abc"}


def test_rest_get_missing_post(rest_store, session):
    session.request.return_value = make_response(payload=[])

    assert rest_store.get_post("nope") is None


def test_rest_create_post(rest_store, session):
    session.request.return_value = make_response(201, payload=[record(7, title="New", published=False)])

    post = rest_store.create_post("New", "body text")

    assert post.id == "7"
    kwargs = session.request.call_args.kwargs
    assert session.request.call_args.args[0] == "POST"
    assert kwargs["headers"]["Prefer"] == "return=representation"
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert kwargs["json"]["title"] == "New"
    assert kwargs["json"]["body"] == "body text"
    assert kwargs["json"]["published"] is False
    assert kwargs["json"]["date"].endswith("Z")


def test_rest_update_post(rest_store, session):
    session.request.return_value = make_response(payload=[record(3, published=True)])

    post = rest_store.update_post("3", {"published": 1})

    assert post.published is True
    assert session.request.call_args.args[0] == "PATCH"
    assert session.request.call_args.kwargs["json"] == {"published": True}
    assert session.request.call_args.kwargs["params"] == {"id": "eq.3"}


def test_rest_update_missing_post_returns_none(rest_store, session):
    session.request.return_value = make_response(payload=[])

    assert rest_store.update_post("404", {"title": "x"}) is None


def test_rest_update_rejects_unknown_fields(rest_store, session):
    with pytest.raises(ValueError):
        rest_store.update_post("1", {"id": "2"})
    session.request.assert_not_called()


def test_rest_delete_with_empty_body(rest_store, session):
    session.request.return_value = make_response(204, text="")

    assert rest_store.delete_post("5") is None
    assert session.request.call_args.args[0] == "DELETE"


def test_rest_error_status_raises(rest_store, session):
    session.request.return_value = make_response(401, text='{"message":"Invalid API key"}')

    with pytest.raises(PostStoreError) as excinfo:
        rest_store.list_posts()

    assert excinfo.value.status_code == 401
    assert "Invalid API key" in excinfo.value.body
    assert session.request.call_count == 1


def test_rest_retries_server_errors(rest_store, session):
    session.request.side_effect = [
        make_response(503, text="busy"),
        make_response(payload=[record(1)]),
    ]

    posts = rest_store.list_posts()

    assert len(posts) == 1
    assert session.request.call_count == 2


def test_rest_retries_rate_limit_then_gives_up(rest_store, session, monkeypatch):
    waits = []
    monkeypatch.setattr("blog_engine.store.time.sleep", waits.append)
    session.request.return_value = make_response(429, text="slow down", headers={"Retry-After": "2"})

    with pytest.raises(PostStoreError) as excinfo:
        rest_store.list_posts()

    assert excinfo.value.status_code == 429
    assert waits == [2, 2]
    assert session.request.call_count == 3


def test_rest_connection_errors_are_wrapped(rest_store, session):
    session.request.side_effect = requests.exceptions.ConnectionError("down")

    with pytest.raises(PostStoreError) as excinfo:
        rest_store.get_post("1")

    assert isinstance(excinfo.value.__cause__, requests.exceptions.ConnectionError)
    assert session.request.call_count == 3


def test_rest_invalid_json_raises(rest_store, session):
    session.request.return_value = make_response(text="<html>oops</html>")

    with pytest.raises(PostStoreError):
        rest_store.list_posts()


# ------------------------------------------------------------------
# LocalPostStore
# ------------------------------------------------------------------

@pytest.fixture
def local_store(tmp_path):
    return LocalPostStore(tmp_path / "data")


def test_local_create_and_get(local_store):
    post = local_store.create_post("Hello", "# Hi", published=True)

    assert len(post.id) == 32
    assert post.date.endswith("Z")
    assert local_store.get_post(post.id) == post
    assert local_store.get_post("missing") is None


def test_local_storage_file_layout(local_store):
    post = local_store.create_post("Hello", "body")

    data = json.loads(local_store.path.read_text(encoding="utf-8"))

    assert list(data) == ["blog_posts"]
    assert data["blog_posts"] == [post.to_record()]


def test_local_list_filters_and_sorts(local_store):
    old = local_store.create_post("old", "", published=True)
    draft = local_store.create_post("draft", "")
    new = local_store.create_post("new", "", published=True)
    local_store.update_post(old.id, {"date": "2020-01-01T00:00:00.000Z"})
    local_store.update_post(new.id, {"date": "2030-01-01T00:00:00.000Z"})

    assert [p.title for p in local_store.list_posts()] == ["new", "old"]
    assert [p.id for p in local_store.list_posts(include_drafts=True)] == [new.id, draft.id, old.id]


def test_local_update(local_store):
    post = local_store.create_post("Title", "body")

    updated = local_store.update_post(post.id, {"title": "Renamed", "published": True})

    assert updated.title == "Renamed"
    assert updated.published is True
    assert updated.body == "body"
    assert local_store.get_post(post.id) == updated
    assert local_store.update_post("missing", {"title": "x"}) is None


def test_local_update_rejects_unknown_fields(local_store):
    post = local_store.create_post("Title", "body")

    with pytest.raises(ValueError):
        local_store.update_post(post.id, {"author": "me"})


def test_local_delete(local_store):
    keep = local_store.create_post("keep", "")
    gone = local_store.create_post("gone", "")

    local_store.delete_post(gone.id)
    local_store.delete_post("never-existed")

    assert local_store.get_post(gone.id) is None
    assert local_store.get_post(keep.id) == keep


def test_local_persists_across_instances(tmp_path):
    first = LocalPostStore(tmp_path)
    post = first.create_post("Persistent", "text", published=True)

    second = LocalPostStore(tmp_path)

    assert second.list_posts() == [post]


def test_local_corrupt_file_raises(local_store):
    local_store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PostStoreError):
        local_store.list_posts()


def test_local_wrong_shape_raises(local_store):
    local_store.path.write_text('{"blog_posts": {"a": 1}}', encoding="utf-8")

    with pytest.raises(PostStoreError):
        local_store.list_posts()


def test_local_empty_store(local_store):
    assert local_store.list_posts() == []
    assert not local_store.path.exists()


def test_sort_posts_orders_by_date_descending():
    posts = [
        Post(id="a", title="a", date="2024-01-01", published=True),
        Post(id="b", title="b", date="2025-01-01", published=False),
        Post(id="c", title="c", date="2023-01-01", published=True),
    ]

    assert [p.id for p in sort_posts(posts)] == ["a", "c"]
    assert [p.id for p in sort_posts(posts, include_drafts=True)] == ["b", "a", "c"]
