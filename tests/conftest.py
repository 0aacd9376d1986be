import json

import pytest
from werkzeug.security import generate_password_hash

import app as app_module
import auth
import config

PASSWORD = "hunter22"
PIN = "4321"

SEED_POSTS = [
    {
        "id": 1,
        "date": "January 2, 2025",
        "title": "First Post",
        "summary": "Intro",
        "content": "# Hi\n\nSome *text*.",
        "category": "General Notes",
        "image": "assets/images/post1.png",
        "slug": "first-post",
        "categorySlug": "general-notes",
        "comments": [],
    }
]

INDEX_HTML = "<html>\n<head>\n<title>Home</title>\n</head>\n<body>\n<h1>Home</h1>\n</body>\n</html>\n"


@pytest.fixture
def site(tmp_path, monkeypatch):
    public = tmp_path / "public"
    (public / "assets" / "data").mkdir(parents=True)
    (public / "assets" / "images").mkdir(parents=True)
    posts_file = public / "assets" / "data" / "posts.json"
    posts_file.write_text(json.dumps(SEED_POSTS, indent=2), encoding="utf-8")
    (public / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    for page in ("blogs", "blog-details", "about", "contact", "privacy-policy", "cookie-policy", "login"):
        (public / f"{page}.html").write_text(f"<p>{page}</p>", encoding="utf-8")
    (public / "assets" / "site.css").write_text("body{}", encoding="utf-8")

    monkeypatch.setattr(config, "PUBLIC_DIR", public)
    monkeypatch.setattr(config, "POSTS_FILE", posts_file)
    monkeypatch.setattr(config, "IMAGES_DIR", public / "assets" / "images")
    monkeypatch.setattr(config, "INDEX_HTML", public / "index.html")
    monkeypatch.setattr(config, "ADMIN_USERNAME", "admin")
    monkeypatch.setattr(config, "ADMIN_PASSWORD", generate_password_hash(PASSWORD))
    monkeypatch.setattr(config, "ADD_SCRIPT_KEY", generate_password_hash(PIN))
    monkeypatch.setattr(config, "JWT_SECRET", "test-secret")
    monkeypatch.setattr(config, "JWT_EXPIRY", "1h")
    monkeypatch.setattr(config, "ENFORCE_REVOCATION", False)
    auth.revocations.clear()
    yield public
    auth.revocations.clear()


@pytest.fixture
def client(site):
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as client:
        yield client


@pytest.fixture
def token(client):
    resp = client.post("/api/login", json={"username": "admin", "password": PASSWORD})
    assert resp.status_code == 200
    return resp.get_json()["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def read_posts():
    with open(config.POSTS_FILE, encoding="utf-8") as fh:
        return json.load(fh)
