"""
Email Service for Jim's Clipboard

This module handles all email-related functionality including:
- Magic link sign-in emails
- Welcome emails
- Weekly pick reminders
- Adding players to the mailing audience

Mail goes out through the Resend HTTP API.
"""

import logging

import requests
from flask import current_app
from markupsafe import escape

from clipboard.errors import ConfigurationError, EmailDeliveryError

logger = logging.getLogger(__name__)

EMAIL_STYLES = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; background: #eee; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .content { padding: 20px; background: #fff; }
    .button { display: inline-block; background: #000; color: white; padding: 12px 24px; font-style: italic; text-transform: uppercase; margin: 10px 5px; text-decoration: none; }
    .footer { text-align: center; padding: 20px; color: #666; font-size: 14px; }
    .magic-link { background: #FABD05; color: #000000; border: 1px solid #000000; font-weight: bold; }
"""


class EmailService:
    """Handles all email sending functionality"""

    def __init__(self, session=None):
        self.api_key = current_app.config.get("RESEND_API_KEY")
        self.api_base_url = current_app.config.get(
            "RESEND_API_BASE_URL", "https://api.resend.com"
        ).rstrip("/")
        self.audience_id = current_app.config.get("RESEND_AUDIENCE_ID", "general")
        self.from_email = current_app.config.get("FROM_EMAIL", "noreply@jimsclipboard.com")
        self.from_name = current_app.config.get("FROM_NAME", "Jim's Clipboard")
        self.app_url = current_app.config.get("APP_URL", "").rstrip("/")
        self.session = session or requests.Session()

    def _post(self, path, payload):
        if not self.api_key:
            raise ConfigurationError("RESEND_API_KEY is not configured")

        try:
            response = self.session.post(
                f"{self.api_base_url}{path}",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=10,
            )
        except requests.exceptions.RequestException as e:
            raise EmailDeliveryError(f"Could not reach email provider: {e}") from e

        return response

    def _send_email(self, to_email, subject, body_html, body_text=None):
        """Send one email; returns the provider's message id"""
        payload = {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": [to_email],
            "subject": subject,
            "html": body_html,
        }
        if body_text:
            payload["text"] = body_text

        response = self._post("/emails", payload)
        if not response.ok:
            logger.error(
                f"Failed to send email to {to_email}: {response.status_code} {response.text}"
            )
            raise EmailDeliveryError(
                f"Email provider returned {response.status_code}", status=response.status_code
            )

        logger.info(f"Email sent successfully to {to_email}")
        return response.json().get("id")

    def _wrap(self, title, body, footer):
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <title>{title}</title>
            <style>{EMAIL_STYLES}</style>
        </head>
        <body>
            <div class="container">
                <div class="content">{body}</div>
                <div class="footer"><p style="font-style: italic;">{footer}</p></div>
            </div>
        </body>
        </html>
        """

    def add_to_audience(self, email, display_name=None):
        """Add a contact to the mailing audience; returns 'added' or 'exists'"""
        payload = {"email": email, "unsubscribed": False}
        if display_name:
            payload["first_name"] = display_name

        response = self._post(f"/audiences/{self.audience_id}/contacts", payload)
        if response.status_code == 409:
            logger.info(f"Contact {email} already exists in {self.audience_id} audience")
            return "exists"
        if not response.ok:
            logger.error(f"Error adding {email} to audience: {response.status_code}")
            raise EmailDeliveryError(
                f"Could not add contact ({response.status_code})", status=response.status_code
            )

        logger.info(f"Added {email} to {self.audience_id} audience")
        return "added"

    def send_magic_link_email(self, email, link):
        """Send the one-time sign-in link"""
        subject = f"Sign in to {self.from_name}"

        body_text = f"""
        Click the link below to sign in to {self.from_name}:

        {link}

        The link expires in an hour. If you didn't ask for it you can ignore this email.
        """

        body_html = self._wrap(
            subject,
            f"""
            <h2>Here's your sign-in link</h2>
            <p><a href="{escape(link)}" class="button magic-link">📋 SIGN IN</a></p>
            <p>The link expires in an hour. If you didn't ask for it you can ignore this email.</p>
            """,
            "See you on the clipboard.",
        )

        return self._send_email(email, subject, body_html, body_text)

    def send_welcome_email(self, email, display_name=None):
        """Send welcome email to a new player and add them to the audience"""
        try:
            self.add_to_audience(email, display_name)
        except EmailDeliveryError as e:
            logger.warning(f"Welcome email for {email} sent without audience signup: {e}")

        name = escape(display_name or "there")
        subject = f"📋🏈✅ Welcome to {self.from_name}!"

        body_html = self._wrap(
            f"Welcome to {self.from_name}!",
            f"""
            <h2>Hey {name}!</h2>
            <p>Football season isn't the same without Jim's Clipboard, so here it is.</p>
            <p>The only setup left is to sign in and add your first name in settings.</p>
            <p>Every Tuesday starts a fresh week and you can make your picks.
            When a game starts, picking is locked.</p>
            <p>In settings you can also add your Super Bowl prediction and choose to
            be reminded to make your picks each week.</p>
            <p><a href="{self.app_url}/signin" class="button magic-link">📋 TO THE CLIPBOARD!</a></p>
            """,
            "I promise I won't bug you with a bunch of emails!",
        )

        return self._send_email(email, subject, body_html)

    def send_weekly_reminder(self, email, display_name=None, week_number=None):
        """Send the "make your picks" reminder for a new week"""
        week_text = f"Week {week_number} is up!" if week_number else "A new week is up!"
        subject = (
            f"Week {week_number} 📋🏈✅ Make Your Picks!"
            if week_number
            else "New Week 📋🏈✅ Make Your Picks!"
        )
        heading = f"{escape(display_name)}! {week_text}" if display_name else f"Hiya! {week_text}"

        body_html = self._wrap(
            week_text,
            f"""
            <div style="text-align: center;">
                <h2>{heading}</h2>
                <p>Reminder, when a game starts, picking is locked, so get there while you can!</p>
                <p><a href="{self.app_url}/signin" class="button magic-link">📋 MAKE YOUR PICKS!</a></p>
            </div>
            """,
            "Good luck :)",
        )

        return self._send_email(email, subject, body_html)

    def send_weekly_reminders(self, users, week_number=None):
        """Remind every ``(user_id, profile)`` pair; failures are collected per user"""
        results = []
        for user_id, profile in users:
            email = profile.get("email")
            if not email:
                continue
            try:
                self.send_weekly_reminder(email, profile.get("displayName"), week_number)
                results.append({"userId": user_id, "email": email, "success": True})
            except EmailDeliveryError as e:
                logger.error(f"Weekly reminder to {email} failed: {e}")
                results.append(
                    {"userId": user_id, "email": email, "success": False, "error": str(e)}
                )
        return results

    def add_users_to_audience(self, users):
        """Add every ``(user_id, profile)`` with an email to the audience"""
        results = []
        for _, profile in users:
            email = profile.get("email")
            if not email:
                continue
            try:
                status = self.add_to_audience(email, profile.get("displayName"))
                results.append({"email": email, "success": True, "status": status})
            except EmailDeliveryError as e:
                logger.error(f"Failed to add {email} to audience: {e}")
                results.append({"email": email, "success": False, "error": str(e)})
        return results
