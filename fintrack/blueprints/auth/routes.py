from flask import Blueprint, current_app, render_template, request, redirect, url_for, flash
from flask_login import login_required, current_user
from ...services import identity, oauth
from ...services.mailer import MailError

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.route("/register", methods=["GET", "POST"])
def register():
    if current_user.is_authenticated:
        return redirect(url_for("dashboard.index"))
    providers = oauth.enabled_providers()
    if request.method == "POST":
        if (request.form.get("password") or "") != (request.form.get("confirm") or ""):
            flash("Passwords do not match", "danger")
            return render_template("auth/register.html", form=request.form, providers=providers)
        try:
            identity.register(
                request.form.get("name"),
                request.form.get("email"),
                request.form.get("password"),
                request.form.get("cpf"),
            )
        except identity.IdentityError as e:
            flash(str(e), "danger")
            return render_template("auth/register.html", form=request.form, providers=providers)
        flash("Account created! Check your e-mail to activate it.", "success")
        return redirect(url_for("auth.login"))
    return render_template("auth/register.html", form={}, providers=providers)


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for("dashboard.index"))
    if request.method == "POST":
        try:
            user = identity.authenticate(request.form.get("email"), request.form.get("password"))
        except identity.InvalidCredentials as e:
            flash(str(e), "danger")
        else:
            identity.sign_in(user, remember=bool(request.form.get("remember")))
            flash("Logged in successfully", "success")
            return redirect(url_for("dashboard.index"))
    return render_template("auth/login.html", providers=oauth.enabled_providers())


@auth_bp.route("/logout")
@login_required
def logout():
    identity.sign_out()
    flash("Logged out", "info")
    return redirect(url_for("auth.login"))


@auth_bp.route("/forgot-password", methods=["GET", "POST"])
def forgot_password():
    if request.method == "POST":
        email = request.form.get("email")
        if not email:
            flash("E-mail is required", "danger")
            return render_template("auth/forgot_password.html")
        try:
            identity.send_password_reset(email)
        except MailError as e:
            # Same answer as a delivered mail so the form does not reveal registered addresses
            current_app.logger.warning("Password reset e-mail for %s not delivered: %s", email, e)
        flash("If the address is registered, a recovery e-mail is on its way.", "success")
        return redirect(url_for("auth.login"))
    return render_template("auth/forgot_password.html")


@auth_bp.route("/reset-password/<token>", methods=["GET", "POST"])
def reset_password(token):
    if request.method == "POST":
        password = request.form.get("password") or ""
        if password != (request.form.get("confirm") or ""):
            flash("Passwords do not match", "danger")
            return render_template("auth/reset_password.html", token=token)
        try:
            identity.reset_password(token, password)
        except identity.IdentityError as e:
            flash(str(e), "danger")
            return render_template("auth/reset_password.html", token=token)
        flash("Password updated. Please log in.", "success")
        return redirect(url_for("auth.login"))
    return render_template("auth/reset_password.html", token=token)


@auth_bp.route("/verify/<token>")
def verify_email(token):
    try:
        identity.verify_email(token)
    except identity.IdentityError as e:
        flash(str(e), "danger")
    else:
        flash("E-mail verified", "success")
    if current_user.is_authenticated:
        return redirect(url_for("dashboard.index"))
    return redirect(url_for("auth.login"))


@auth_bp.route("/verify/resend", methods=["POST"])
@login_required
def resend_verification():
    if current_user.email_verified:
        flash("E-mail already verified", "info")
        return redirect(url_for("dashboard.index"))
    try:
        identity.send_email_verification(current_user)
    except MailError as e:
        flash(str(e), "danger")
    else:
        flash("Verification e-mail sent", "success")
    return redirect(url_for("dashboard.index"))


@auth_bp.route("/oauth/<provider>")
def oauth_login(provider):
    redirect_uri = url_for("auth.oauth_callback", provider=provider, _external=True)
    try:
        return redirect(oauth.authorization_url(provider, redirect_uri))
    except oauth.OAuthError as e:
        flash(str(e), "danger")
        return redirect(url_for("auth.login"))


@auth_bp.route("/oauth/<provider>/callback")
def oauth_callback(provider):
    if request.args.get("error"):
        flash("Sign-in was cancelled", "warning")
        return redirect(url_for("auth.login"))
    redirect_uri = url_for("auth.oauth_callback", provider=provider, _external=True)
    try:
        user = oauth.complete_login(
            provider,
            request.args.get("code"),
            request.args.get("state"),
            redirect_uri,
        )
    except oauth.OAuthError as e:
        current_app.logger.warning("OAuth sign-in with %s failed: %s", provider, e)
        flash(str(e), "danger")
        return redirect(url_for("auth.login"))
    identity.sign_in(user)
    flash("Logged in successfully", "success")
    return redirect(url_for("dashboard.index"))
