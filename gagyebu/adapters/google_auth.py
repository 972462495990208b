from __future__ import annotations

from pathlib import Path
import os

from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow


def _service_account_credentials(scopes: list[str]):
    email = os.environ.get("GOOGLE_SHEETS_CLIENT_EMAIL", "").strip()
    # .env files usually carry the PEM with escaped newlines
    key = os.environ.get("GOOGLE_SHEETS_PRIVATE_KEY", "").replace("\\n", "\n")
    if not email or not key.strip():
        return None
    info = {
        "type": "service_account",
        "client_email": email,
        "private_key": key,
        "token_uri": "https://oauth2.googleapis.com/token",
    }
    return service_account.Credentials.from_service_account_info(info, scopes=scopes)


def get_credentials(scopes: list[str]):
    """Service account when configured, otherwise the cached installed-app OAuth token."""
    sa = _service_account_credentials(scopes)
    if sa is not None:
        return sa

    token_path = Path(os.environ.get("GOOGLE_TOKEN_PATH", "./data/google_token.json"))
    creds = None

    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), scopes)

    needs_login = not creds or not creds.valid or not creds.has_scopes(scopes)

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
        needs_login = False

    if needs_login:
        client_id = os.environ.get("GOOGLE_CLIENT_ID", "").strip()
        client_secret = os.environ.get("GOOGLE_CLIENT_SECRET", "").strip()
        if not client_id or not client_secret:
            raise RuntimeError(
                "Missing GOOGLE_SHEETS_CLIENT_EMAIL/GOOGLE_SHEETS_PRIVATE_KEY "
                "or GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET"
            )

        config = {
            "installed": {
                "client_id": client_id,
                "client_secret": client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
                "redirect_uris": ["http://localhost"],
            }
        }
        flow = InstalledAppFlow.from_client_config(config, scopes)
        creds = flow.run_local_server(port=0)
        token_path.parent.mkdir(parents=True, exist_ok=True)
        token_path.write_text(creds.to_json(), encoding="utf-8")

    return creds
