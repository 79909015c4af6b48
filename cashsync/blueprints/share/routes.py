from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from flask_login import login_required, current_user
from ...errors import AlreadyJoined, NotFound, Unauthorized
from ...models import CURRENCIES
from ...services import sharing
from ..dashboard.routes import summary_stream

share_bp = Blueprint("share", __name__)

INVALID_LINK = "Invalid or expired link."


@share_bp.route("/invite/")
@login_required
def index():
    return render_template(
        "share/index.html",
        joined=sharing.list_joined(current_user.id),
        accepted=sharing.list_accepted_viewers(current_user.id),
    )


@share_bp.route("/invite/link", methods=["POST"])
@login_required
def create_link():
    link = sharing.create_share_link(current_user.id)
    flash(link, "link")
    return redirect(url_for("share.index"))


@share_bp.route("/invite/join", methods=["POST"])
@login_required
def join():
    link = (request.form.get("link") or "").strip()
    if not link:
        flash("Please paste a link.", "danger")
        return redirect(url_for("share.index"))
    try:
        record = sharing.join_via_link(current_user.id, link)
    except NotFound:
        flash(INVALID_LINK, "danger")
    except AlreadyJoined as exc:
        flash(exc.message, "info")
    else:
        flash(f"Successfully joined {sharing.display_name(record.owner_id)}'s dashboard!", "success")
    return redirect(url_for("share.index"))


@share_bp.route("/invite/<int:join_id>/leave", methods=["POST"])
@login_required
def leave(join_id):
    try:
        sharing.leave(join_id, current_user.id)
    except NotFound as exc:
        flash(exc.message, "warning")
    except Unauthorized:
        abort(403)
    else:
        flash("You have left the dashboard", "success")
    return redirect(url_for("share.index"))


@share_bp.route("/invite/<int:join_id>/revoke", methods=["POST"])
@login_required
def revoke(join_id):
    try:
        sharing.revoke_viewer(join_id, current_user.id)
    except NotFound as exc:
        flash(exc.message, "warning")
    except Unauthorized:
        abort(403)
    else:
        flash("User removed from your dashboard.", "success")
    return redirect(url_for("share.index"))


@share_bp.route("/shared-dashboard/<token>")
def shared_dashboard(token):
    try:
        summary = sharing.get_shared_view(token, top=current_app.config["TOP_EXPENSES"])
    except NotFound:
        return render_template("share/invalid.html", message=INVALID_LINK), 404
    return render_template(
        "dashboard/index.html",
        summary=summary,
        currencies=CURRENCIES,
        title=f"{summary['owner_name']}'s Shared Dashboard",
        read_only=True,
        stream_url=url_for("share.shared_stream", token=token),
    )


@share_bp.route("/shared-dashboard/<token>/stream")
def shared_stream(token):
    try:
        owner_id = sharing.resolve_token(token)
    except NotFound:
        abort(404)
    return summary_stream(owner_id)
