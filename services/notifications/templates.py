"""HTML bodies for account e-mails."""

from datetime import datetime

APP_NAME = "Stream Haven"


def verification_email(link: str) -> tuple[str, str, str]:
    """Return (subject, html, text) for the account activation mail."""
    subject = f"{APP_NAME} – Activate Your Account"
    html = f"""
    <div style="max-width: 600px; margin: auto; font-family: Arial, sans-serif; background-color: #f9f9f9; padding: 30px; border-radius: 10px;">
      <h2 style="color: #333; text-align: center;">Welcome to {APP_NAME}</h2>
      <p style="font-size: 16px; color: #444; line-height: 1.5;">
        Thank you for signing up! Please click the button below to verify your email and activate your account:
      </p>
      <div style="text-align: center; margin: 30px 0;">
        <a href="{link}" target="_blank" style="background-color: #ff3b3f; color: #fff; padding: 12px 24px; text-decoration: none; border-radius: 5px; font-weight: bold; display: inline-block;">
          Verify My Account
        </a>
      </div>
      <p style="font-size: 14px; color: #666;">
        If the button doesn't work, copy and paste the following link into your browser:<br />
        <a href="{link}" style="color: #007BFF;">{link}</a>
      </p>
      <p style="font-size: 14px; color: #666;">This link expires in 10 minutes.</p>
      <hr style="margin: 40px 0; border: none; border-top: 1px solid #ddd;" />
      <p style="text-align: center; font-size: 13px; color: #999;">&copy; {datetime.now().year} {APP_NAME}. All rights reserved.</p>
    </div>
    """
    text = f"Verify your {APP_NAME} account: {link}\nThis link expires in 10 minutes."
    return subject, html, text


def password_reset_email(link: str) -> tuple[str, str, str]:
    """Return (subject, html, text) for the password reset mail."""
    subject = f"{APP_NAME} Password Reset"
    html = f"""
    <div style="font-family: Arial, sans-serif; background-color: #f9f9f9; padding: 24px;">
      <div style="max-width: 600px; margin: auto; background-color: #fff; border-radius: 8px; padding: 24px;">
        <h2 style="color: #333;">{APP_NAME} Password Reset</h2>
        <p style="color: #555;">We received a request to reset your password. Click the button below to proceed:</p>
        <div style="text-align: center; margin: 30px 0;">
          <a href="{link}" style="background-color: #0066ff; color: #fff; padding: 12px 24px; text-decoration: none; border-radius: 4px; display: inline-block;">
            Reset My Password
          </a>
        </div>
        <p style="color: #999; font-size: 14px;">If you didn't request this, you can safely ignore this email.</p>
        <p style="color: #999; font-size: 14px;">This link will expire in 10 minutes.</p>
      </div>
    </div>
    """
    text = f"Reset your {APP_NAME} password: {link}\nThis link expires in 10 minutes."
    return subject, html, text
