"""Tests for the auth bridge between the identity provider and profile documents."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from google.api_core import exceptions as gcp_exceptions

from sweetshop.apis.IdentityToolkit import IdentityToolkit
from sweetshop.exceptions import AuthenticationError, ExternalServiceError, ValidationError
from sweetshop.models.firestore_types import IdentityUser
from sweetshop.services.auth_service import AuthService
from sweetshop.store import cart_slice

UID = "test-user-123"


def response(status_code, payload):
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = payload
    return mock


@pytest.fixture
def identity(monkeypatch):
    monkeypatch.delenv("FIREBASE_AUTH_EMULATOR_HOST", raising=False)
    return IdentityToolkit("test-api-key")


@pytest.fixture
def auth(firestore_client, identity, session, config):
    service = AuthService(identity, session, config)
    yield service
    service.close()


class TestAuthStateBridge:
    """Profile reconciliation on every auth change."""

    def test_existing_profile_is_published(self, auth, firestore_client, session):
        firestore_client.seed(f"users/{UID}", {"uid": UID, "name": "Amira", "profilePic": "avatars/amira"})
        published = auth.handle_auth_state_changed(IdentityUser(uid=UID, email="amira@example.com"))

        assert published.name == "Amira"
        assert session.user.state.profilePic == "avatars/amira"
        assert session.uid == UID

    def test_missing_profile_falls_back_to_email(self, auth, firestore_client, session):
        published = auth.handle_auth_state_changed(IdentityUser(uid=UID, email="amira@example.com"))
        assert published.name == "amira@example.com"
        assert published.profilePic == ""
        assert firestore_client.data(f"users/{UID}") is None

    def test_missing_profile_can_be_persisted(self, auth, firestore_client):
        auth.handle_auth_state_changed(IdentityUser(uid=UID, email="amira@example.com"), persist_missing=True)
        stored = firestore_client.data(f"users/{UID}")
        assert stored["name"] == "amira@example.com"
        assert "seed=amira@example.com" in stored["profilePic"]
        assert stored["createdAt"] is not None

    def test_profile_read_failure_uses_fallback(self, auth, firestore_client, session):
        firestore_client.fail("get", "users/", gcp_exceptions.PermissionDenied("denied"))
        published = auth.handle_auth_state_changed(IdentityUser(uid=UID, email="amira@example.com"))
        assert published.name == "amira@example.com"

    def test_late_profile_is_discarded(self, auth, firestore_client, session):
        firestore_client.seed(f"users/{UID}", {"uid": UID, "name": "Amira"})
        firestore_client.on("get", f"users/{UID}", session.sign_out)

        assert auth.handle_auth_state_changed(IdentityUser(uid=UID, email="amira@example.com")) is None
        assert session.current_user is None

    def test_sign_out_clears_session(self, auth, identity, firestore_client, session):
        auth.handle_auth_state_changed(IdentityUser(uid=UID, email="amira@example.com"))
        session.cart.dispatch(cart_slice.add_to_cart("p1"))

        auth.sign_out()

        assert session.current_user is None
        assert cart_slice.is_empty(session.cart.state)


class TestEmailAuth:

    def test_invalid_email_is_rejected_before_any_request(self, auth):
        with patch("requests.post") as post:
            with pytest.raises(ValidationError):
                auth.sign_in_with_email("not-an-email", "secret1")
            post.assert_not_called()

    def test_sign_in_publishes_profile(self, auth, firestore_client, session):
        firestore_client.seed(f"users/{UID}", {"uid": UID, "name": "Amira"})
        payload = {"localId": UID, "email": "amira@example.com", "idToken": "tok"}
        with patch("requests.post", return_value=response(200, payload)) as post:
            user = auth.sign_in_with_email(" amira@example.com ", "secret1")

        assert post.call_args.kwargs["json"]["email"] == "amira@example.com"
        assert post.call_args.kwargs["params"] == {"key": "test-api-key"}
        assert user.uid == UID
        assert session.user.state.name == "Amira"

    def test_provider_error_is_translated(self, auth):
        error = {"error": {"message": "INVALID_LOGIN_CREDENTIALS"}}
        with patch("requests.post", return_value=response(400, error)):
            with pytest.raises(AuthenticationError) as exc_info:
                auth.sign_in_with_email("amira@example.com", "wrong")
        assert exc_info.value.user_message == "Invalid email or password."

    def test_network_error(self, auth):
        with patch("requests.post", side_effect=requests.ConnectionError("down")):
            with pytest.raises(ExternalServiceError):
                auth.sign_in_with_email("amira@example.com", "secret1")

    def test_sign_up_writes_profile_before_publishing(self, auth, firestore_client, session):
        signup = {"localId": UID, "email": "amira@example.com", "idToken": "tok"}
        updated = {"localId": UID, "displayName": "Amira"}
        seen_profiles = []
        session.user.subscribe(lambda state: seen_profiles.append(firestore_client.data(f"users/{UID}")))

        with patch("requests.post",
                   side_effect=[response(200, signup), response(200, updated)]):
            auth.sign_up_with_email("Amira", "amira@example.com", "secret1")

        stored = firestore_client.data(f"users/{UID}")
        assert stored["name"] == "Amira"
        assert stored["email"] == "amira@example.com"
        assert seen_profiles and seen_profiles[0] is not None
        assert session.user.state.name == "Amira"

    def test_sign_up_without_name_uses_default(self, auth, firestore_client):
        signup = {"localId": UID, "email": "amira@example.com", "idToken": "tok"}
        with patch("requests.post", return_value=response(200, signup)):
            auth.sign_up_with_email("", "amira@example.com", "secret1")
        assert firestore_client.data(f"users/{UID}")["name"] == "New User"


class TestProviderSignIn:

    def test_first_sign_in_creates_profile(self, auth, firestore_client, session):
        payload = {"localId": UID, "email": "amira@example.com", "photoUrl": "https://photos.example.com/a.jpg"}
        with patch("requests.post", return_value=response(200, payload)):
            auth.sign_in_with_provider("google.com", id_token="google-token")

        stored = firestore_client.data(f"users/{UID}")
        assert stored["name"] == "amira@example.com"
        assert stored["profilePic"] == "https://photos.example.com/a.jpg"
        assert session.user.state.profilePic == "https://photos.example.com/a.jpg"

    def test_returning_user_profile_is_kept(self, auth, firestore_client, session):
        firestore_client.seed(f"users/{UID}", {"uid": UID, "name": "Amira", "profilePic": "avatars/amira"})
        payload = {"localId": UID, "email": "amira@example.com", "displayName": "Google Name"}
        with patch("requests.post", return_value=response(200, payload)):
            auth.sign_in_with_provider("google.com", access_token="access")

        assert firestore_client.data(f"users/{UID}")["name"] == "Amira"
        assert session.user.state.name == "Amira"

    def test_credential_is_required(self, auth):
        with pytest.raises(AuthenticationError):
            auth.sign_in_with_provider("google.com")
