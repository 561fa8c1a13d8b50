# wrangle/services/google_auth.py
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from core.logging_setup import get_logger
from core.settings import CALENDAR, CLIENT_SECRET_PATH, TOKEN_PATH


class GoogleAuth:
    """OAuth desktop credentials for the Google Calendar API, cached in ``token.json``."""

    def __init__(
        self,
        secrets_path: str | Path = CLIENT_SECRET_PATH,
        token_path: str | Path = TOKEN_PATH,
        scopes: Sequence[str] = CALENDAR.scopes,
    ):
        self.secrets_path = Path(secrets_path)
        self.token_path = Path(token_path)
        self.scopes = list(scopes)
        self.creds: Optional[Credentials] = None
        self.logger = get_logger("google_auth")

    def ensure_credentials(self, *, interactive: bool = True) -> bool:
        """Load, refresh or (when ``interactive``) obtain credentials.

        Returns False when no usable credentials can be produced without
        prompting the user, or when the consent flow cannot start.
        """
        if self._usable(self.creds):
            return True

        if self.creds is None and self.token_path.exists():
            self.creds = self._load_token()

        if self.creds is not None and not self._has_required_scopes(self.creds):
            self.logger.info("Cached token is missing required scopes; requesting consent again")
            self.reset_credentials()

        if self.creds is not None and not self.creds.valid and self.creds.expired and self.creds.refresh_token:
            try:
                self.creds.refresh(Request())
            except RefreshError as exc:
                self.logger.warning("Token refresh failed: %s; forcing reauth", exc)
                self.reset_credentials()

        if not self._usable(self.creds):
            if not interactive:
                return False
            if not self.secrets_path.exists():
                self.logger.warning(
                    "OAuth client file %s not found; create a Desktop OAuth client in Google Cloud",
                    self.secrets_path,
                )
                return False
            try:
                flow = InstalledAppFlow.from_client_secrets_file(str(self.secrets_path), self.scopes)
                self.logger.info("Running OAuth consent flow (local server)")
                self.creds = flow.run_local_server(
                    port=0,
                    access_type="offline",
                    prompt="consent",
                    include_granted_scopes="true",
                )
            except (GoogleAuthError, ValueError, OSError) as exc:
                self.logger.error("OAuth consent flow failed: %s", exc)
                self.creds = None
                return False

        if not self._usable(self.creds):
            return False

        self._persist_credentials(self.creds)
        self._log_active_scopes(self.creds.scopes)
        return True

    def get_credentials(self) -> Optional[Credentials]:
        return self.creds

    def has_cached_token(self) -> bool:
        return self.token_path.exists()

    def reset_credentials(self) -> None:
        self.creds = None
        try:
            if self.token_path.exists():
                self.token_path.unlink()
                self.logger.info("Removed cached Google token")
        except OSError as exc:
            self.logger.warning("Failed to remove cached token: %s", exc)

    # ----- helpers -----
    def _usable(self, creds: Optional[Credentials]) -> bool:
        return bool(creds and creds.valid and self._has_required_scopes(creds))

    def _load_token(self) -> Optional[Credentials]:
        try:
            return Credentials.from_authorized_user_file(str(self.token_path), self.scopes)
        except (ValueError, json.JSONDecodeError) as exc:
            self.logger.warning("Failed to load %s: %s; triggering reauth", self.token_path, exc)
            self.reset_credentials()
            return None

    def _persist_credentials(self, creds: Credentials) -> None:
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.token_path.with_suffix(".tmp")
        try:
            tmp_path.write_text(creds.to_json(), encoding="utf-8")
            os.replace(tmp_path, self.token_path)
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

    def _has_required_scopes(self, creds: Credentials) -> bool:
        # Freshly loaded tokens may not report scopes until first refresh.
        if not creds.scopes:
            return True
        current = set(creds.scopes)
        return all(scope in current for scope in self.scopes)

    def _log_active_scopes(self, scopes: Iterable[str] | None) -> None:
        scopes_list = sorted(set(scopes or []))
        self.logger.debug("Active scopes: %s", ", ".join(scopes_list) if scopes_list else "-")


__all__ = ["GoogleAuth"]
