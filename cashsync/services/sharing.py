"""Link-based dashboard sharing.

An owner mints share links; anyone holding a link's token can see the
owner's aggregated dashboard and may "join" it, which records the visit so
both sides can list and later drop the connection.
"""
import uuid
from datetime import datetime
from urllib.parse import urlsplit

from flask import current_app, request, url_for
from sqlalchemy.exc import IntegrityError

from . import guard_storage
from .aggregation import summarize
from .expenses import snapshot
from ..errors import AlreadyJoined, NotFound, Unauthenticated, Unauthorized
from ..extensions import db
from ..models import JoinRecord, ShareLink, User

UNKNOWN_USER = "Unknown User"


def _require_user(user_id):
    if user_id is None:
        raise Unauthenticated()


def new_token():
    return str(uuid.uuid4())


def extract_token(link_or_token):
    """Accept a bare token or a link whose last path segment is the token."""
    value = (link_or_token or "").strip()
    if "/" in value:
        value = urlsplit(value).path.rstrip("/").split("/")[-1]
    return value


def share_url(token):
    base = current_app.config.get("SHARE_BASE_URL")
    path = url_for("share.shared_dashboard", token=token)
    if base:
        return base.rstrip("/") + path
    return request.host_url.rstrip("/") + path


@guard_storage
def display_name(user_id):
    user = db.session.get(User, user_id) if user_id is not None else None
    if user is None or not user.name:
        return UNKNOWN_USER
    return user.name


@guard_storage
def create_share_link(owner_id):
    """Persist a fresh token for ``owner_id`` and return the link to hand out."""
    _require_user(owner_id)
    link = ShareLink(owner_id=owner_id, token=new_token(), created_at=datetime.utcnow())
    db.session.add(link)
    db.session.commit()
    current_app.logger.info("share link created for user %s", owner_id)
    return share_url(link.token)


@guard_storage
def resolve_token(token):
    link = ShareLink.query.filter_by(token=token).first() if token else None
    if link is None:
        raise NotFound("Invalid or expired link.")
    return link.owner_id


@guard_storage
def join_via_link(user_id, link_or_token):
    _require_user(user_id)
    token = extract_token(link_or_token)
    owner_id = resolve_token(token)
    if JoinRecord.query.filter_by(user_id=user_id, token=token).first():
        current_app.logger.info("user %s already joined token for owner %s", user_id, owner_id)
        raise AlreadyJoined()
    record = JoinRecord(user_id=user_id, owner_id=owner_id, token=token, joined_at=datetime.utcnow())
    db.session.add(record)
    try:
        db.session.commit()
    except IntegrityError as exc:
        # a concurrent join for the same (user, token) got there first
        db.session.rollback()
        raise AlreadyJoined() from exc
    current_app.logger.info("user %s joined dashboard of user %s", user_id, owner_id)
    return record


@guard_storage
def list_joined(user_id):
    """Dashboards ``user_id`` has joined, each with the owner's name."""
    _require_user(user_id)
    rows = JoinRecord.query.filter_by(user_id=user_id).order_by(JoinRecord.joined_at, JoinRecord.id).all()
    return [{"record": r, "name": display_name(r.owner_id)} for r in rows]


@guard_storage
def list_accepted_viewers(owner_id):
    """Users who joined ``owner_id``'s dashboard, each with the viewer's name."""
    _require_user(owner_id)
    rows = JoinRecord.query.filter_by(owner_id=owner_id).order_by(JoinRecord.joined_at, JoinRecord.id).all()
    return [{"record": r, "name": display_name(r.user_id)} for r in rows]


def _get_join(join_id):
    record = db.session.get(JoinRecord, join_id)
    if record is None:
        raise NotFound("Dashboard connection not found")
    return record


@guard_storage
def leave(join_id, requesting_user_id):
    _require_user(requesting_user_id)
    record = _get_join(join_id)
    if record.user_id != requesting_user_id:
        raise Unauthorized()
    owner_id = record.owner_id
    db.session.delete(record)
    db.session.commit()
    current_app.logger.info("user %s left dashboard of user %s", requesting_user_id, owner_id)


@guard_storage
def revoke_viewer(join_id, requesting_owner_id):
    _require_user(requesting_owner_id)
    record = _get_join(join_id)
    if record.owner_id != requesting_owner_id:
        raise Unauthorized()
    viewer_id = record.user_id
    db.session.delete(record)
    db.session.commit()
    current_app.logger.info("user %s removed viewer %s", requesting_owner_id, viewer_id)


def get_shared_view(token, top=None):
    """Aggregate the current expenses of whoever owns ``token``."""
    owner_id = resolve_token(token)
    if top is None:
        top = current_app.config.get("TOP_EXPENSES", 5)
    summary = summarize(snapshot(owner_id), top=top)
    summary["owner_id"] = owner_id
    summary["owner_name"] = display_name(owner_id)
    return summary
