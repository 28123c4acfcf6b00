"""
Session lifecycle: login, logout, refresh-token rotation and password change.

Per identity there is at most one live refresh token, stored on the user row.
Login overwrites it, logout clears it and every successful refresh swaps it
for a new one with a conditional UPDATE, so a rotated token is rejected even
while its signature is still valid.
"""
from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from sqlalchemy import or_

from models.user import User
from models.schemas.common import load_or_raise
from models.schemas.user import UserLoginSchema, UserOutSchema, ChangePasswordSchema
from utils.errors import InvalidInput, NotFound, Unauthorized
from utils.security import PasswordManager, TokenPair, TokenService

logger = logging.getLogger(__name__)

user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()
change_password_schema = ChangePasswordSchema()

REPLAYED_MESSAGE = "Refresh token is expired or used"


class LoginResult(NamedTuple):
    user: dict
    access_token: str
    refresh_token: str


class SessionController:
    def __init__(self, storage, tokens: TokenService, passwords: PasswordManager):
        self.storage = storage
        self.tokens = tokens
        self.passwords = passwords

    def _issue(self, user: User) -> TokenPair:
        return self.tokens.issue(
            user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
        )

    def login(self, username: Optional[str] = None, email: Optional[str] = None,
              password: Optional[str] = None) -> LoginResult:
        data = load_or_raise(
            user_login_schema, {"username": username, "email": email, "password": password}
        )
        username, email, password = data.get("username"), data.get("email"), data.get("password")

        if not (username or email):
            raise InvalidInput("Username or Email is required.")
        if not password:
            raise InvalidInput("Password is required.")

        criteria = []
        if username:
            criteria.append(User.username == username)
        if email:
            criteria.append(User.email == email)

        session = self.storage.get_session()
        user = session.query(User).filter(or_(*criteria)).first()
        if not user:
            raise NotFound("User does not exist.")

        if not self.passwords.verify(password, user.password_hash):
            logger.info("Failed login for user %s", user.id)
            raise Unauthorized("Invalid user credentials.")

        pair = self._issue(user)
        # rotation on login: any refresh token handed out earlier dies here
        user.refresh_token = pair.refresh_token
        self.storage.new(user)
        self.storage.save()
        logger.info("User %s logged in", user.id)

        return LoginResult(
            user=user_out_schema.dump(user),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )

    def logout(self, identity_id: str) -> None:
        """Forget the stored refresh token. Logging out twice is fine."""
        session = self.storage.get_session()
        session.query(User).filter(User.id == identity_id).update(
            {User.refresh_token: None}, synchronize_session="fetch"
        )
        self.storage.save()
        logger.info("User %s logged out", identity_id)

    def refresh(self, presented: Optional[str]) -> TokenPair:
        if not presented:
            raise Unauthorized("Unauthorized request")

        # one message for every rejection; the reason only goes to the log
        try:
            identity_id = self.tokens.verify_refresh(presented)
        except Unauthorized as err:
            logger.info("Rejected refresh token: %s", err.message)
            raise Unauthorized(REPLAYED_MESSAGE) from err

        session = self.storage.get_session()
        user = session.get(User, identity_id)
        if not user:
            logger.warning("Refresh token for unknown user %s", identity_id)
            raise Unauthorized(REPLAYED_MESSAGE)

        if user.refresh_token != presented:
            logger.warning("Replayed or revoked refresh token for user %s", identity_id)
            raise Unauthorized(REPLAYED_MESSAGE)

        pair = self._issue(user)
        # compare-and-swap: only replaces the value we just checked
        swapped = (
            session.query(User)
            .filter(User.id == identity_id, User.refresh_token == presented)
            .update({User.refresh_token: pair.refresh_token}, synchronize_session="fetch")
        )
        if swapped != 1:
            self.storage.rollback()
            logger.warning("Lost refresh race for user %s", identity_id)
            raise Unauthorized(REPLAYED_MESSAGE)
        self.storage.save()
        logger.info("Rotated refresh token for user %s", identity_id)
        return pair

    def change_password(self, identity_id: str, old_password: Optional[str],
                        new_password: Optional[str]) -> None:
        data = load_or_raise(
            change_password_schema, {"old_password": old_password, "new_password": new_password}
        )
        user = self.storage.get(User, identity_id)
        if not user:
            raise NotFound("User not found")

        if not self.passwords.verify(data["old_password"], user.password_hash):
            raise Unauthorized("Invalid old password")

        user.password_hash = self.passwords.hash(data["new_password"])
        self.storage.new(user)
        self.storage.save()
        logger.info("User %s changed password", identity_id)
