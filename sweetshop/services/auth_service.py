"""Auth bridge: reconciles identity provider sign-ins with profile documents."""

import re
from typing import Optional

from sweetshop.apis.Db import Db
from sweetshop.apis.IdentityToolkit import IdentityToolkit
from sweetshop.config.loader import AppConfig, get_avatar_url, get_default_name
from sweetshop.documents.users.UserProfile import UserProfile, log_user_activity
from sweetshop.exceptions import ValidationError
from sweetshop.models.firestore_types import FullUser, IdentityUser, SessionUser
from sweetshop.store.session import Session
from sweetshop.util.logger import get_logger

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthService:
    """Publishes a normalized user record into the session on every auth change.

    The identity provider's state listener is the only place that writes the
    signed-in user into the session; sign-up and social sign-in persist the
    profile first and then announce the sign-in.
    """

    def __init__(self, identity: IdentityToolkit, session: Session, config: Optional[AppConfig] = None):
        """Initialize AuthService and subscribe to auth state changes.

        Args:
            identity: Identity provider client
            session: Session whose user store receives the profile
            config: Application configuration
        """
        self.identity = identity
        self.session = session
        self.config = config or {}
        self.db = Db.get_instance()
        self._unsubscribe = identity.on_auth_state_changed(self.handle_auth_state_changed)

    @staticmethod
    def _validate_credentials(email: str, password: str):
        if not email or not EMAIL_PATTERN.match(email.strip()):
            raise ValidationError("Please enter a valid email address.", field="email")
        if not password:
            raise ValidationError("Please enter your password.", field="password")

    def sign_in_with_email(self, email: str, password: str) -> IdentityUser:
        """Sign in with email and password.

        Raises:
            ValidationError: If the email or password is missing
            AuthenticationError: If the identity provider rejects the credentials
        """
        self._validate_credentials(email, password)
        user = self.identity.sign_in_with_password(email.strip(), password)
        log_user_activity(user.uid, "signed_in", {"provider": "password"}, db=self.db)
        return user

    def sign_up_with_email(self, name: str, email: str, password: str) -> IdentityUser:
        """Create an account and its profile document, then sign in.

        Args:
            name: Display name entered at sign-up
            email: Account email
            password: Account password
        """
        self._validate_credentials(email, password)
        name = (name or "").strip()

        user = self.identity.sign_up(email.strip(), password, display_name=name or None)
        profile_name = name or user.displayName or get_default_name(self.config)

        try:
            UserProfile(user.uid, {}).create_doc({
                "uid": user.uid,
                "name": profile_name,
                "email": user.email or email.strip(),
                "profilePic": user.photoURL or "",
            })
        except Exception as e:
            raise Db.translate_error(e, "users")

        log_user_activity(user.uid, "signed_up", {"provider": "password"}, db=self.db)
        self.identity.notify_signed_in(user)
        return user

    def sign_in_with_provider(self, provider_id: str, id_token: Optional[str] = None,
                              access_token: Optional[str] = None) -> IdentityUser:
        """Federated sign-in. The profile is created on the first sign-in only.

        Args:
            provider_id: Provider id, e.g. google.com
            id_token: OAuth id token from the provider
            access_token: OAuth access token from the provider
        """
        user = self.identity.sign_in_with_idp(provider_id, id_token=id_token, access_token=access_token)

        try:
            existing = UserProfile.find(user.uid)
            if existing is None:
                email = user.email or ""
                UserProfile(user.uid, {}).create_doc({
                    "uid": user.uid,
                    "name": user.displayName or email,
                    "email": email,
                    "profilePic": user.photoURL or get_avatar_url(self.config, email),
                }, merge=True)
                logger.info(f"Created profile for first {provider_id} sign-in of {user.uid}")
        except Exception as e:
            raise Db.translate_error(e, "users")

        log_user_activity(user.uid, "signed_in", {"provider": provider_id}, db=self.db)
        self.identity.notify_signed_in(user)
        return user

    def restore_session(self, id_token: str) -> IdentityUser:
        """Initial load: verify a stored ID token and publish its user."""
        return self.identity.verify_session(id_token)

    def sign_out(self):
        self.identity.sign_out()

    def handle_auth_state_changed(self, identity_user: Optional[IdentityUser],
                                  persist_missing: bool = False) -> Optional[FullUser]:
        """Listener for identity provider state changes.

        Args:
            identity_user: The signed-in user, or None after sign-out
            persist_missing: Write a profile document when none exists

        Returns:
            The published record, or None when signed out or when the result arrived too late
        """
        if identity_user is None:
            self.session.sign_out()
            return None

        generation = self.session.generation
        email = identity_user.email or ""
        try:
            profile = UserProfile.find(identity_user.uid)
        except Exception as e:
            logger.error(f"Could not load profile for {identity_user.uid}: {Db.translate_error(e, 'users')}")
            profile = None

        if not self.session.is_current(generation):
            logger.info(f"Discarding profile for {identity_user.uid}, session changed while loading")
            return None

        if profile is not None:
            name = profile.doc.name or email
            profile_pic = profile.doc.profilePic
        else:
            logger.warning(f"No profile document for {identity_user.uid}, using fallback")
            name = email
            profile_pic = ""
            if persist_missing:
                self._persist_fallback_profile(identity_user)

        full_user = FullUser(
            user=SessionUser(uid=identity_user.uid, email=identity_user.email),
            name=name,
            profilePic=profile_pic,
        )
        self.session.sign_in(full_user)
        return full_user

    def _persist_fallback_profile(self, identity_user: IdentityUser):
        email = identity_user.email or ""
        try:
            UserProfile(identity_user.uid, {}).create_doc({
                "uid": identity_user.uid,
                "email": email,
                "name": email,
                "profilePic": get_avatar_url(self.config, email),
            }, merge=True)
            logger.info(f"Persisted fallback profile for {identity_user.uid}")
        except Exception as e:
            logger.error(f"Could not persist fallback profile for {identity_user.uid}: {e}")

    def close(self):
        self._unsubscribe()
