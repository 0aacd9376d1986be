import json
from datetime import datetime

import pytest

from store import PostNotFound, PostStore, StoreError, ensure_data_file, make_post


@pytest.fixture
def store(tmp_path):
    path = tmp_path / "posts.json"
    path.write_text(
        json.dumps(
            [
                {"id": 1, "slug": "one", "comments": []},
                {"id": 3, "slug": "three", "comments": ["hi"]},
            ]
        ),
        encoding="utf-8",
    )
    return PostStore(path)


def test_list_keeps_file_order(store):
    assert [p["id"] for p in store.list()] == [1, 3]


def test_missing_file_is_store_error(tmp_path):
    with pytest.raises(StoreError):
        PostStore(tmp_path / "nope.json").list()


def test_malformed_file_is_store_error(tmp_path):
    path = tmp_path / "posts.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        PostStore(path).list()


def test_non_list_document_is_store_error(tmp_path):
    path = tmp_path / "posts.json"
    path.write_text('{"posts": []}', encoding="utf-8")
    with pytest.raises(StoreError):
        PostStore(path).list()


def test_next_id_uses_last_element(store):
    assert store.next_id() == 4


def test_next_id_after_out_of_order_delete_can_repeat(tmp_path):
    path = tmp_path / "posts.json"
    path.write_text(json.dumps([{"id": 5}, {"id": 2}]), encoding="utf-8")
    # Last element + 1, even though id 3 is not the largest free id.
    assert PostStore(path).next_id() == 3


def test_next_id_empty_and_string_ids(tmp_path):
    path = tmp_path / "posts.json"
    path.write_text("[]", encoding="utf-8")
    assert PostStore(path).next_id() == 1
    path.write_text(json.dumps([{"id": "7"}]), encoding="utf-8")
    assert PostStore(path).next_id() == 8


def test_append_writes_whole_list(store):
    store.append({"id": 4, "slug": "four"})
    assert [p["id"] for p in store.list()] == [1, 3, 4]


def test_replace_and_loose_id_match(tmp_path):
    path = tmp_path / "posts.json"
    path.write_text(json.dumps([{"id": "2", "slug": "old"}]), encoding="utf-8")
    store = PostStore(path)
    store.replace(2, {"id": 2, "slug": "new"})
    assert store.list() == [{"id": 2, "slug": "new"}]


def test_replace_missing_leaves_file(store):
    before = store.path.read_bytes()
    with pytest.raises(PostNotFound):
        store.replace(99, {"id": 99})
    assert store.path.read_bytes() == before


def test_remove(store):
    removed = store.remove(1)
    assert removed["slug"] == "one"
    assert [p["id"] for p in store.list()] == [3]
    with pytest.raises(PostNotFound):
        store.remove(1)


def test_add_comment_only_touches_target(store):
    store.add_comment("one", "nice")
    posts = store.list()
    assert posts[0]["comments"] == ["nice"]
    assert posts[1]["comments"] == ["hi"]
    with pytest.raises(PostNotFound):
        store.add_comment("missing", "x")


def test_get_by_slug(store):
    assert store.get("three")["id"] == 3
    with pytest.raises(PostNotFound):
        store.get("nope")


def test_make_post():
    post = make_post(
        2,
        title="Hello World",
        summary="s",
        content="c",
        category="Tech News",
        image="assets/images/post2.png",
        now=datetime(2026, 10, 9),
    )
    assert post["date"] == "October 9, 2026"
    assert post["slug"] == "hello-world"
    assert post["categorySlug"] == "tech-news"
    assert post["comments"] == []


def test_ensure_data_file(tmp_path):
    path = tmp_path / "data" / "posts.json"
    ensure_data_file(path)
    assert PostStore(path).list() == []
    path.write_text('[{"id": 1}]', encoding="utf-8")
    ensure_data_file(path)
    assert PostStore(path).list() == [{"id": 1}]


def test_non_object_record_is_store_error(tmp_path):
    path = tmp_path / "posts.json"
    path.write_text("[null]", encoding="utf-8")
    store = PostStore(path)
    with pytest.raises(StoreError):
        store.list()
    with pytest.raises(StoreError):
        store.next_id()


def test_add_comment_to_malformed_comments_is_store_error(tmp_path):
    path = tmp_path / "posts.json"
    path.write_text(json.dumps([{"id": 1, "slug": "one", "comments": None}]), encoding="utf-8")
    before = path.read_bytes()
    with pytest.raises(StoreError):
        PostStore(path).add_comment("one", "hi")
    assert path.read_bytes() == before
