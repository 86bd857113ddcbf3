"""Identity provider double for storefront tests."""

from sweetshop.models.firestore_types import IdentityUser


class FakeIdentity:
    """Signs in whoever asks, as ``uid``, and publishes auth changes like IdentityToolkit."""

    def __init__(self, uid: str = "test-user-123"):
        self.uid = uid
        self.error = None
        self._listeners = []

    def on_auth_state_changed(self, listener):
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _publish(self, user):
        for listener in list(self._listeners):
            listener(user)

    def sign_in_with_password(self, email, password):
        if self.error:
            raise self.error
        user = IdentityUser(uid=self.uid, email=email)
        self._publish(user)
        return user

    def sign_up(self, email, password, display_name=None):
        if self.error:
            raise self.error
        return IdentityUser(uid=self.uid, email=email, displayName=display_name)

    def notify_signed_in(self, user):
        self._publish(user)

    def sign_out(self):
        self._publish(None)
