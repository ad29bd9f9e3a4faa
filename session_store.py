import streamlit as st
import logging

import auth_engine

logger = logging.getLogger(__name__)

USER_KEY = "current_user"
RESOLVING_KEY = "is_resolving"


class SessionStore:
    """
    The signed-in MerchantUser for this browser session, kept in Streamlit
    session state so it survives reruns.

    `is_resolving` starts True and drops to False once the backend has been
    asked for an existing session (a failed lookup counts as "no user").
    Every mutation goes through auth_engine and then replaces the held user;
    failures propagate to the calling screen.
    """

    def __init__(self, state=None):
        self.state = st.session_state if state is None else state
        if RESOLVING_KEY not in self.state:
            self.state[RESOLVING_KEY] = True
            self.state[USER_KEY] = None

    @property
    def current_user(self):
        return self.state.get(USER_KEY)

    @property
    def is_resolving(self):
        return bool(self.state.get(RESOLVING_KEY))

    @property
    def is_authenticated(self):
        return self.current_user is not None

    def _set_user(self, user):
        self.state[USER_KEY] = user
        self.state["user_email"] = user.get("email") if user else None
        self.state[RESOLVING_KEY] = False

    def resolve(self):
        """Looks up an existing backend session once; later calls are no-ops."""
        if not self.is_resolving:
            return self.current_user
        try:
            self._set_user(auth_engine.get_current_user())
        except Exception as e:
            logger.error(f"Failed to get current user: {e}")
            self._set_user(None)
        return self.current_user

    def refresh(self):
        self.state[RESOLVING_KEY] = True
        return self.resolve()

    def login(self, email, password):
        user = auth_engine.login_user(email, password)
        self._set_user(user)
        return user

    def register(self, fields):
        user = auth_engine.register_user(
            fields["email"],
            fields["password"],
            fields.get("firstName", ""),
            fields.get("lastName", ""),
        )
        self._set_user(user)
        return user

    def logout(self):
        auth_engine.logout_user()
        self._set_user(None)

    def update(self, fields):
        """Persists `fields` on top of the held user so unspecified fields survive."""
        merged = {**(self.current_user or {}), **fields}
        user = auth_engine.update_current_user(merged)
        self._set_user(user)
        return user
