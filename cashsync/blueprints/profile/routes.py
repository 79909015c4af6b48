from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import login_required, current_user
from ...extensions import db
from ...models import User

profile_bp = Blueprint("profile", __name__, url_prefix="/profile")


@profile_bp.route("/", methods=["GET", "POST"])
@login_required
def index():
    if request.method == "POST":
        name = (request.form.get("name") or "").strip()
        email = (request.form.get("email") or "").strip().lower()
        phone = (request.form.get("phone") or "").strip()
        if not name or not email:
            flash("Name and email are required", "danger")
            return render_template("profile/index.html", user=current_user, editing=True)
        taken = User.query.filter(User.email == email, User.id != current_user.id).first()
        if taken:
            flash("Email already registered", "warning")
            return render_template("profile/index.html", user=current_user, editing=True)
        current_user.name = name
        current_user.email = email
        current_user.phone = phone or None
        db.session.commit()
        flash("Profile updated successfully", "success")
        return redirect(url_for("profile.index"))
    editing = request.args.get("edit") == "1"
    return render_template("profile/index.html", user=current_user, editing=editing)
