#!/usr/bin/env python3
"""Helper script to check and create the .env file for the tracking service."""

from pathlib import Path
import os

SECRET_KEYS = (
    "SHIPTRACK_SUPABASE_KEY",
    "SHIPTRACK_JWT_SECRET",
    "SHIPTRACK_EMAIL_API_KEY",
    "SHIPTRACK_TWILIO_AUTH_TOKEN",
)

TEMPLATE = """# Access gate (shared with the identity service that issues tokens)
SHIPTRACK_JWT_SECRET=change-me
# SHIPTRACK_JWT_ISSUER=

# Supabase (leave empty to keep shipments in memory)
SHIPTRACK_SUPABASE_URL=https://your-project-id.supabase.co
SHIPTRACK_SUPABASE_KEY=your-service-role-key-here

# Email (Resend)
SHIPTRACK_EMAIL_API_KEY=
SHIPTRACK_EMAIL_FROM=noreply@example.com

# SMS (Twilio)
SHIPTRACK_TWILIO_ACCOUNT_SID=
SHIPTRACK_TWILIO_AUTH_TOKEN=
SHIPTRACK_TWILIO_FROM_NUMBER=

# Push (FCM HTTP v1, service-account key file)
SHIPTRACK_FCM_PROJECT_ID=
SHIPTRACK_FCM_CREDENTIALS_FILE=

# SHIPTRACK_FRONTEND_ALLOWED_ORIGINS - JSON array or comma-separated
# SHIPTRACK_MAX_CONCURRENT_NOTIFICATIONS=0
# SHIPTRACK_REALTIME_REQUIRE_AUTH=true
"""


def _mask(line: str) -> str:
    name, sep, value = line.partition("=")
    if sep and name.strip() in SECRET_KEYS and len(value.strip()) > 8:
        return f"{name}={value.strip()[:4]}...{value.strip()[-4:]}"
    return line


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Shipment tracking environment checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Edit it and restart the backend.")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    for key in ("SHIPTRACK_SUPABASE_URL", "SHIPTRACK_JWT_SECRET"):
        print(f"{'✅' if os.getenv(key) else '❌'} {key} {'set' if os.getenv(key) else 'not set'} in environment")
    print()

    try:
        import sys
        sys.path.insert(0, str(project_root / "src"))
        from shiptrack.config import DEFAULT_JWT_SECRET, settings

        checks = {
            "Supabase": bool(settings.supabase_url and settings.supabase_key),
            "Email": bool(settings.email_api_key),
            "SMS": bool(settings.twilio_account_sid and settings.twilio_auth_token and settings.twilio_from_number),
            "Push": bool(settings.fcm_project_id and settings.fcm_credentials_file),
        }
        for name, configured in checks.items():
            print(f"{'✅' if configured else '❌'} {name} {'configured' if configured else 'not configured'}")
        if settings.jwt_secret == DEFAULT_JWT_SECRET:
            print("⚠️  SHIPTRACK_JWT_SECRET is still the development default")
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")


if __name__ == "__main__":
    main()
