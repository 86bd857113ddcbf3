"""Signed-in user state."""

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict

from sweetshop.models.firestore_types import FullUser, SessionUser
from sweetshop.store.events import USER_CLEARED
from sweetshop.store.store import Action

SET_FULL_USER = "user/setFullUser"
UPDATE_USER_PROFILE = "user/updateUserProfile"
CLEAR_USER = USER_CLEARED


class UserState(BaseModel):
    model_config = ConfigDict(frozen=True)

    currentUser: Optional[SessionUser] = None
    name: str = ""
    profilePic: str = ""
    status: Literal["idle", "succeeded"] = "idle"


def set_full_user(full_user: FullUser) -> Action:
    return Action(SET_FULL_USER, full_user)


def update_user_profile(name: Optional[str] = None, profile_pic: Optional[str] = None) -> Action:
    return Action(UPDATE_USER_PROFILE, {"name": name, "profilePic": profile_pic})


def clear_user() -> Action:
    return Action(CLEAR_USER)


def _set_full_user(state: UserState, full_user: FullUser) -> UserState:
    return UserState(
        currentUser=full_user.user,
        name=full_user.name,
        profilePic=full_user.profilePic,
        status="succeeded",
    )


def _update_user_profile(state: UserState, payload: dict) -> UserState:
    # only non-empty fields replace the current values
    changes = {k: v for k, v in payload.items() if v}
    if not changes:
        return state
    return state.model_copy(update=changes)


def _clear_user(state: UserState, payload=None) -> UserState:
    return UserState()


HANDLERS = {
    SET_FULL_USER: _set_full_user,
    UPDATE_USER_PROFILE: _update_user_profile,
    CLEAR_USER: _clear_user,
}


def user_reducer(state: UserState, action: Action) -> UserState:
    handler = HANDLERS.get(action.type)
    return handler(state, action.payload) if handler else state
