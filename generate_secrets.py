#!/usr/bin/env python3
"""
Generate secure secrets for Jim's Clipboard
Run this script to generate the required SECRET_KEY and CRON_SECRET
"""

import secrets


def generate_secrets():
    """Generate secure random keys for the application"""
    print("🔐 Generating secure secrets for Jim's Clipboard...")
    print("=" * 50)

    secret_key = secrets.token_urlsafe(32)
    cron_secret = secrets.token_urlsafe(32)

    print(f"SECRET_KEY={secret_key}")
    print(f"CRON_SECRET={cron_secret}")

    print("=" * 50)
    print("📝 Copy these values to your .env file")
    print("📝 Set the same CRON_SECRET as the bearer token in your cron provider")
    print("⚠️  Keep these secrets secure and never commit them to version control!")


if __name__ == "__main__":
    generate_secrets()
