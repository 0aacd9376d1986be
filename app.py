from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from flask import Flask, g, jsonify, request, send_from_directory
from markdown import markdown
from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

import auth
import config
import injector
from store import PostNotFound, PostStore, StoreError, ensure_data_file, make_post


app = Flask(__name__, static_folder=None)
logger = logging.getLogger(__name__)

STATIC_PAGES = {
    "/about": "about.html",
    "/contact": "contact.html",
    "/privacy-policy": "privacy-policy.html",
    "/cookie-policy": "cookie-policy.html",
    "/login": "login.html",
}


def get_store() -> PostStore:
    return PostStore(config.POSTS_FILE)


def json_body() -> Optional[Dict]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def bad_body():
    return jsonify({"error": "Invalid request body"}), 400


def parse_blog_id(raw: str) -> Optional[int]:
    try:
        return int(raw, 10)
    except ValueError:
        return None


def upload_extension(filename: str) -> str:
    ext = secure_filename(os.path.splitext(filename)[1].lstrip("."))
    return "." + ext if ext else ""


def render_markdown(md_text: str) -> str:
    return markdown(
        md_text or "",
        extensions=["fenced_code", "tables", "sane_lists"],
        output_format="html",
    )


def send_page(name: str):
    return send_from_directory(config.PUBLIC_DIR, name)


@app.before_request
def serve_public():
    """Serve files under public/ before any route is matched.

    ``/about`` resolves to ``public/about.html`` when it exists, and paths
    with an extension are served as-is.
    """
    if request.method not in ("GET", "HEAD"):
        return None
    rel = request.path.lstrip("/")
    if not rel or rel.endswith("/"):
        return None
    if not os.path.splitext(rel)[1]:
        rel += ".html"
    target = safe_join(str(config.PUBLIC_DIR), rel)
    if target and os.path.isfile(target):
        return send_from_directory(config.PUBLIC_DIR, rel)
    return None


@app.route("/")
def index():
    return send_page("index.html")


@app.route("/blogs")
@app.route("/category/<slug>")
def blogs(slug: Optional[str] = None):
    return send_page("blogs.html")


def static_page(name: str):
    def view():
        return send_page(name)

    view.__name__ = "page_" + name.rsplit(".", 1)[0].replace("-", "_")
    return view


# serve_public answers these first; the rules only turn a missing page into a
# 404 instead of letting it fall through to /<slug>.
for rule, filename in STATIC_PAGES.items():
    app.add_url_rule(rule, view_func=static_page(filename))


@app.route("/<slug>")
def blog_details(slug: str):
    return send_page("blog-details.html")


@app.route("/posts")
@app.route("/api/posts")
def list_posts():
    try:
        return jsonify(get_store().list())
    except StoreError:
        logger.exception("Reading posts failed")
        return jsonify({"error": "Failed to read posts file."}), 500


@app.route("/api/posts/<slug>")
def get_post(slug: str):
    try:
        post = get_store().get(slug)
    except PostNotFound:
        return jsonify({"error": "Post not found"}), 404
    except StoreError:
        logger.exception("Reading posts failed")
        return jsonify({"error": "Failed to read posts file."}), 500
    return jsonify({**post, "contentHtml": render_markdown(post.get("content", ""))})


@app.route("/add-post", methods=["POST"])
def add_post():
    store = get_store()
    title = request.form.get("title", "").strip()
    image = request.files.get("image")
    if not title:
        return jsonify({"error": "Title is required"}), 400
    if image is None or not image.filename:
        return jsonify({"error": "Image is required"}), 400

    try:
        post_id = store.next_id()
    except StoreError:
        logger.exception("Generating post id failed")
        return jsonify({"error": "Failed to generate post ID"}), 500

    try:
        ext = upload_extension(image.filename)
        image_name = f"post{post_id}{ext}"
        config.IMAGES_DIR.mkdir(parents=True, exist_ok=True)
        image.save(str(config.IMAGES_DIR / image_name))

        post = make_post(
            post_id,
            title=title,
            summary=request.form.get("summary", ""),
            content=request.form.get("content", ""),
            category=request.form.get("category", ""),
            image="assets/images/" + image_name,
        )
        store.append(post)
    except (StoreError, OSError):
        logger.exception("Saving post failed")
        return jsonify({"error": "Failed to save post."}), 500

    logger.info("Added post %s (%s)", post_id, post["slug"])
    return jsonify({"status": "success", "id": post_id})


@app.route("/api/add-comment", methods=["POST"])
def add_comment():
    data = json_body()
    if data is None:
        return bad_body()
    try:
        get_store().add_comment(data.get("slug"), data.get("comment"))
    except PostNotFound:
        return jsonify({"error": "Post not found"}), 404
    except StoreError:
        logger.exception("Adding comment failed")
        return jsonify({"error": "Failed to add comment."}), 500
    return jsonify({"message": "Comment added successfully"})


@app.route("/api/blogs/<blog_id>", methods=["PUT"])
@auth.check_auth
def update_blog(blog_id: str):
    updated = json_body()
    if updated is None:
        return bad_body()
    post_id = parse_blog_id(blog_id)
    if post_id is None:
        return jsonify({"error": "Blog not found"}), 404
    try:
        get_store().replace(post_id, updated)
    except PostNotFound:
        return jsonify({"error": "Blog not found"}), 404
    except StoreError:
        logger.exception("Updating blog %s failed", post_id)
        return jsonify({"error": "Failed to save post."}), 500
    return jsonify({"status": "success", "id": updated.get("id")})


@app.route("/api/blogs/<blog_id>", methods=["DELETE"])
@auth.check_auth
def delete_blog(blog_id: str):
    post_id = parse_blog_id(blog_id)
    if post_id is None:
        return jsonify({"error": "Blog not found"}), 404
    try:
        get_store().remove(post_id)
    except PostNotFound:
        return jsonify({"error": "Blog not found"}), 404
    except StoreError:
        logger.exception("Deleting blog %s failed", post_id)
        return jsonify({"error": "Failed to delete blog."}), 500
    logger.info("Deleted blog %s", post_id)
    return jsonify({"status": "success", "message": f"Blog with ID {post_id} deleted."})


@app.route("/api/login", methods=["POST"])
def api_login():
    data = json_body()
    if data is None:
        return bad_body()
    try:
        token = auth.login(data.get("username"), data.get("password"))
    except auth.InvalidCredentials:
        return jsonify({"error": "Invalid credentials"}), 401
    except ValueError:
        logger.exception("Token expiry is misconfigured")
        return jsonify({"error": "Failed to issue token."}), 500
    return jsonify({"token": token})


@app.route("/api/logout", methods=["POST"])
@auth.check_auth
def api_logout():
    if not auth.logout(g.token):
        return jsonify({"message": "Token is already blacklisted"}), 403
    return jsonify({"message": "Logged out successfully"})


@app.route("/api/add-script", methods=["POST"])
@auth.check_auth
def api_add_script():
    data = json_body()
    if data is None:
        return bad_body()
    script = data.get("script")
    try:
        injector.check_script(script)
        if not auth.verify_secret(config.ADD_SCRIPT_KEY, data.get("pin")):
            return jsonify({"error": "Error: Incorrect pin"}), 403
        injector.add_script(config.INDEX_HTML, script, data.get("position"))
    except injector.ScriptRejected as exc:
        return jsonify({"error": exc.message}), exc.status
    except OSError:
        logger.exception("Updating index.html failed")
        return jsonify({"status": "error", "message": "Failed to update index.html"}), 500
    return jsonify({"status": "success", "message": "Script added successfully."})


@app.route("/api/verify-token")
@auth.check_auth
def verify_token():
    return "OK", 200


if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ensure_data_file(config.POSTS_FILE)
    config.IMAGES_DIR.mkdir(parents=True, exist_ok=True)
    logger.info("Server running on http://%s:%s", config.HOST, config.PORT)
    app.run(host=config.HOST, port=config.PORT)
