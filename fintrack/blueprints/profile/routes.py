from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import login_required, current_user
from ...services import store

profile_bp = Blueprint("profile", __name__, url_prefix="/profile")


@profile_bp.route("/", methods=["GET", "POST"])
@login_required
def index():
    if request.method == "POST":
        name = (request.form.get("name") or "").strip()
        if not name:
            flash("Name is required", "danger")
            return render_template("profile/index.html", user=current_user)
        try:
            # Name is the only editable field; e-mail and CPF stay read-only
            store.update_fields(current_user._get_current_object(), name=name)
        except store.StoreError:
            flash("Error updating profile.", "danger")
        else:
            flash("Profile updated!", "success")
        return redirect(url_for("profile.index"))
    return render_template("profile/index.html", user=current_user)
