from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Dict, Optional
from urllib.parse import parse_qs

from flask import (
    Flask,
    flash,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

import accounts
import config
import errors
import posts
from session_store import MemorySessionStore, ServerSessionInterface

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=config.LOG_LEVEL,
)
logger = logging.getLogger(__name__)
logger.setLevel(config.LOG_LEVEL)


class MethodOverrideMiddleware:
    """Let HTML forms send DELETE/PUT/PATCH as ``POST ...?_method=DELETE``."""

    allowed_methods = frozenset(["DELETE", "PUT", "PATCH"])

    def __init__(self, wsgi_app):
        self.wsgi_app = wsgi_app

    def __call__(self, environ, start_response):
        if environ.get("REQUEST_METHOD") == "POST":
            method = environ.get("HTTP_X_HTTP_METHOD_OVERRIDE")
            if not method:
                query = parse_qs(environ.get("QUERY_STRING", ""))
                method = (query.get("_method") or [""])[0]
            method = method.upper()
            if method in self.allowed_methods:
                environ["REQUEST_METHOD"] = method
        return self.wsgi_app(environ, start_response)


app = Flask(__name__)
app.secret_key = config.SECRET_KEY
app.session_interface = ServerSessionInterface(MemorySessionStore(config.SESSION_LIFETIME))
app.wsgi_app = MethodOverrideMiddleware(app.wsgi_app)


def current_user() -> Optional[Dict]:
    return session.get("user")


def is_authenticated() -> bool:
    return current_user() is not None


def is_admin() -> bool:
    user = current_user()
    return user is not None and user.get("role") == accounts.ROLE_ADMIN


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not is_authenticated():
            return redirect(url_for("login", next=request.path))
        return view(*args, **kwargs)

    return wrapped


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not is_admin():
            return "Forbidden", 403
        return view(*args, **kwargs)

    return wrapped


def safe_next(target: Optional[str]) -> str:
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return url_for("blog_index")


@app.before_request
def start_timer():
    g.request_started = time.perf_counter()


@app.after_request
def log_request(response):
    started = g.get("request_started")
    elapsed = (time.perf_counter() - started) * 1000 if started else 0.0
    logger.info("%s %s %s %.1f ms", request.method, request.path, response.status_code, elapsed)
    return response


@app.context_processor
def inject_globals():
    return {
        "site_title": config.SITE_TITLE,
        "current_user": current_user(),
        "is_admin": is_admin,
        "format_date": posts.format_date,
        "can_delete": posts.can_delete,
    }


@app.errorhandler(errors.NotFound)
@app.errorhandler(errors.Forbidden)
def handle_blunt_error(exc: errors.BlogError):
    return str(exc), exc.status_code


@app.errorhandler(errors.StorageFailure)
def handle_storage_failure(exc: errors.StorageFailure):
    logger.exception("Storage failure while handling %s %s", request.method, request.path)
    return "Internal Server Error", 500


@app.errorhandler(404)
@app.errorhandler(405)
def page_not_found(exc):
    return "Not Found", 404


@app.route("/")
def blog_index():
    return render_template("index.html", posts=posts.list_posts())


@app.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        if is_authenticated():
            return redirect(url_for("blog_index"))
        return render_template("login.html")

    email = request.form.get("email", "").strip()
    password = request.form.get("password", "")
    try:
        user = accounts.authenticate(email, password)
    except (errors.InvalidCredentials, errors.AdminNotConfigured) as exc:
        logger.info("Failed login for %s: %s", email, exc)
        return render_template("login.html", error=str(exc), email=email), exc.status_code

    session.clear()
    session.regenerate()
    session["user"] = user
    logger.info("%s %s logged in", user["role"], email)
    return redirect(safe_next(request.args.get("next")))


@app.route("/logout", methods=["POST"])
def logout():
    user = current_user()
    session.clear()
    if user:
        logger.info("%s logged out", user["email"])
    return redirect(url_for("login"))


@app.route("/signup", methods=["GET", "POST"])
def signup():
    if request.method == "GET":
        if is_authenticated():
            return redirect(url_for("blog_index"))
        return render_template("signup.html")

    name = request.form.get("name", "").strip()
    email = request.form.get("email", "").strip()
    password = request.form.get("password", "")
    try:
        accounts.register(name, email, password)
    except (errors.MissingCredentials, errors.DuplicateEmail) as exc:
        return (
            render_template("signup.html", error=str(exc), name=name, email=email),
            exc.status_code,
        )

    flash("Account created, please log in", "success")
    return redirect(url_for("login"))


@app.route("/me")
def me():
    return jsonify(current_user())


@app.route("/posts/new")
@login_required
def new_post():
    return render_template("new_post.html")


@app.route("/posts", methods=["POST"])
@login_required
def create_post():
    posts.create_post(request.form.get("title"), request.form.get("content"), current_user())
    flash("Post created", "success")
    return redirect(url_for("blog_index"))


@app.route("/posts/<post_id>", methods=["DELETE"])
@login_required
def delete_post(post_id: str):
    posts.delete_post(post_id, current_user())
    flash("Post deleted", "success")
    return redirect(url_for("blog_index"))


@app.route("/posts/<post_id>/like", methods=["POST"])
@login_required
def like_post(post_id: str):
    posts.like(post_id, current_user())
    return redirect(url_for("blog_index"))


@app.route("/posts/<post_id>/dislike", methods=["POST"])
@login_required
def dislike_post(post_id: str):
    posts.dislike(post_id, current_user())
    return redirect(url_for("blog_index"))


if __name__ == "__main__":
    app.run(port=config.PORT)
