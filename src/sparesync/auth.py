"""OAuth2 token handling for the SpareBank 1 API."""

import logging
from typing import Any

import requests

from sparesync.config import TokenStore, mask_token
from sparesync.exceptions import AuthExchangeError, RefreshError
from sparesync.models import TokenState

logger = logging.getLogger(__name__)

BASE_URL = "https://api.sparebank1.no"
AUTHORIZE_URL = f"{BASE_URL}/oauth/authorize"
TOKEN_URL = f"{BASE_URL}/oauth/token"
REQUEST_TIMEOUT = 30

# Echoed back by the bank on redirect
AUTH_STATE = "deadbeef"


class TokenManager:
    """Exchanges authorization codes and refresh tokens at the bank's token endpoint.

    Every successful exchange is written to the TokenStore, which persists it
    before control returns to the caller.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        store: TokenStore,
        redirect_uri: str,
        fin_inst: str,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.store = store
        self.redirect_uri = redirect_uri
        self.fin_inst = fin_inst
        self._session = requests.Session()

    def authorize_url(self) -> str:
        """Build the URL the user opens to authorize access."""
        request = requests.Request(
            "GET",
            AUTHORIZE_URL,
            params={
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "finInst": self.fin_inst,
                "state": AUTH_STATE,
                "response_type": "code",
            },
        )
        return request.prepare().url  # type: ignore[return-value]

    def exchange_authorization_code(self, code: str) -> TokenState:
        """Trade an authorization code for a new token pair.

        Raises:
            AuthExchangeError: If the token endpoint rejects the code
        """
        logger.debug("Exchanging authorization code")
        state = self._request_tokens(
            {
                "grant_type": "authorization_code",
                "code": code.strip(),
                "redirect_uri": self.redirect_uri,
            },
            AuthExchangeError,
        )
        self.store.update(state)
        return state

    def refresh(self) -> TokenState:
        """Trade the stored refresh token for a new token pair.

        Raises:
            RefreshError: If no refresh token is stored or the bank rejects it.
                The user has to run the authorization flow again.
        """
        refresh_token = self.store.refresh_token
        if not refresh_token:
            raise RefreshError("No refresh token stored. Run 'sparesync bank-auth' first.")

        logger.debug("Refreshing token, old access token %s", mask_token(self.store.access_token))
        state = self._request_tokens(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            RefreshError,
        )
        logger.debug("New access token %s", mask_token(state.access_token))
        self.store.update(state)
        return state

    def _request_tokens(
        self,
        data: dict[str, str],
        error_cls: type[AuthExchangeError] | type[RefreshError],
    ) -> TokenState:
        """POST to the token endpoint and parse the token pair."""
        form = {"client_id": self.client_id, "client_secret": self.client_secret, **data}
        grant_type = data["grant_type"]

        try:
            response = self._session.post(TOKEN_URL, data=form, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise error_cls(f"Token request ({grant_type}) failed: {e}") from e

        if not response.ok:
            raise error_cls(
                f"Token endpoint rejected {grant_type} grant: "
                f"{response.status_code} {response.text}"
            )

        try:
            body: Any = response.json()
            return TokenState(
                access_token=body["access_token"],
                refresh_token=body["refresh_token"],
            )
        except (ValueError, KeyError, TypeError) as e:
            raise error_cls(f"Malformed token response ({grant_type}): {e}") from e
