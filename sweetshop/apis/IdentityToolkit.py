"""Firebase Authentication client.

Credential and federated sign-in go through the Identity Toolkit REST API
with the project's Web API key; restoring a session from a stored ID token
is verified with firebase_admin.
"""

import os
from typing import Callable, Dict, List, Optional
from urllib.parse import urlencode

import requests
from firebase_admin import auth

from sweetshop.apis.Db import Db
from sweetshop.exceptions import AuthenticationError, ExternalServiceError
from sweetshop.models import IdentityUser
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)

IDENTITY_TOOLKIT_HOST = "https://identitytoolkit.googleapis.com"

AuthListener = Callable[[Optional[IdentityUser]], None]


class IdentityToolkit:
    """Identity provider facade with auth state change notifications."""

    def __init__(self, api_key: str, request_uri: str = "http://localhost", timeout: Optional[float] = None):
        """
        Args:
            api_key: Firebase Web API key
            request_uri: Continue URI sent with federated sign-in requests
            timeout: Optional HTTP timeout in seconds
        """
        self.api_key = api_key
        self.request_uri = request_uri
        self.timeout = timeout
        self.current_user: Optional[IdentityUser] = None
        self._listeners: List[AuthListener] = []

        emulator_host = os.getenv("FIREBASE_AUTH_EMULATOR_HOST")
        if emulator_host:
            self.base_url = f"http://{emulator_host}/identitytoolkit.googleapis.com/v1"
        else:
            self.base_url = f"{IDENTITY_TOOLKIT_HOST}/v1"

    # Auth state
    def on_auth_state_changed(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener called with the signed-in user, or None after sign-out."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_current_user(self, user: Optional[IdentityUser]):
        self.current_user = user
        for listener in list(self._listeners):
            listener(user)

    # REST calls
    def _post(self, endpoint: str, payload: dict) -> dict:
        url = f"{self.base_url}/accounts:{endpoint}"
        try:
            response = requests.post(url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise ExternalServiceError("identitytoolkit", f"Request to {endpoint} failed: {e}")

        if response.status_code >= 400:
            try:
                message = response.json().get("error", {}).get("message", "")
            except ValueError:
                message = ""
            if message:
                raise AuthenticationError(message)
            raise ExternalServiceError(
                "identitytoolkit", f"{endpoint} returned {response.status_code}", response.status_code
            )

        return response.json()

    @staticmethod
    def _to_user(data: Dict, provider_id: str = "password") -> IdentityUser:
        return IdentityUser(
            uid=data["localId"],
            email=data.get("email"),
            displayName=data.get("displayName") or None,
            photoURL=data.get("photoUrl") or None,
            providerId=data.get("providerId") or provider_id,
            idToken=data.get("idToken"),
            refreshToken=data.get("refreshToken"),
        )

    def sign_in_with_password(self, email: str, password: str) -> IdentityUser:
        data = self._post("signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        user = self._to_user(data)
        logger.info(f"Signed in {user.uid} with password")
        self._set_current_user(user)
        return user

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> IdentityUser:
        """Create an email/password account. Listeners are notified by the caller once the profile exists."""
        data = self._post("signUp", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        if display_name:
            updated = self._post("update", {
                "idToken": data["idToken"],
                "displayName": display_name,
                "returnSecureToken": True,
            })
            data = {**data, **{k: v for k, v in updated.items() if v}}
        user = self._to_user(data)
        logger.info(f"Created account {user.uid}")
        self.current_user = user
        return user

    def sign_in_with_idp(self, provider_id: str, id_token: Optional[str] = None,
                         access_token: Optional[str] = None) -> IdentityUser:
        """Federated sign-in with a credential obtained from the provider (e.g. google.com)."""
        if not id_token and not access_token:
            raise AuthenticationError("INVALID_IDP_RESPONSE", "An id_token or access_token is required")

        post_body = {"providerId": provider_id}
        if id_token:
            post_body["id_token"] = id_token
        if access_token:
            post_body["access_token"] = access_token

        data = self._post("signInWithIdp", {
            "postBody": urlencode(post_body),
            "requestUri": self.request_uri,
            "returnIdpCredential": True,
            "returnSecureToken": True,
        })
        user = self._to_user(data, provider_id=provider_id)
        logger.info(f"Signed in {user.uid} with {provider_id}")
        self.current_user = user
        return user

    def verify_session(self, id_token: str) -> IdentityUser:
        """Restore a session on initial load from a stored ID token."""
        Db.ensure_app()
        try:
            claims = auth.verify_id_token(id_token)
        except auth.ExpiredIdTokenError:
            raise AuthenticationError("TOKEN_EXPIRED")
        except (auth.InvalidIdTokenError, ValueError):
            raise AuthenticationError("INVALID_ID_TOKEN")

        user = IdentityUser(
            uid=claims["uid"],
            email=claims.get("email"),
            displayName=claims.get("name"),
            photoURL=claims.get("picture"),
            providerId=claims.get("firebase", {}).get("sign_in_provider", "password"),
            idToken=id_token,
        )
        self._set_current_user(user)
        return user

    def notify_signed_in(self, user: IdentityUser):
        """Publish a sign-in that was completed by sign_up or sign_in_with_idp."""
        self._set_current_user(user)

    def sign_out(self):
        if self.current_user:
            logger.info(f"Signing out {self.current_user.uid}")
        self._set_current_user(None)
