"""
Account management: registration and profile updates.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_

from models.base_model import is_valid_id
from models.user import User
from models.schemas.common import load_or_raise, has_text
from models.schemas.user import UserRegisterSchema, UserUpdateSchema, UserOutSchema
from utils.errors import Conflict, InvalidInput, NotFound
from utils.security import PasswordManager

logger = logging.getLogger(__name__)

user_register_schema = UserRegisterSchema()
user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()


def find_by_identifier(session, identifier: str) -> Optional[User]:
    """Look a user up by id when identifier is a UUID, else by username."""
    if not identifier:
        return None
    if is_valid_id(identifier):
        return session.get(User, identifier)
    return session.query(User).filter(User.username == identifier.strip().lower()).first()


class AccountService:
    def __init__(self, storage, passwords: PasswordManager):
        self.storage = storage
        self.passwords = passwords

    def _get(self, identity_id: str) -> User:
        user = self.storage.get(User, identity_id)
        if not user:
            raise NotFound("User not found")
        return user

    def register(self, payload: dict) -> dict:
        data = load_or_raise(user_register_schema, payload, "All fields are required.")
        session = self.storage.get_session()

        existing = (
            session.query(User)
            .filter(or_(User.username == data["username"], User.email == data["email"]))
            .first()
        )
        if existing:
            raise Conflict("User with this username or email already exists")

        user = User(
            username=data["username"],
            email=data["email"],
            full_name=data["full_name"],
            password_hash=self.passwords.hash(data["password"]),
            avatar=data["avatar"].strip(),
            cover_image=(data.get("cover_image") or "").strip(),
            watch_history=[],
        )
        # a racing registration trips the unique index; the boundary maps it to 409
        self.storage.new(user)
        self.storage.save()
        logger.info("Registered user %s", user.id)
        return user_out_schema.dump(user)

    def current_user(self, identity_id: str) -> dict:
        return user_out_schema.dump(self._get(identity_id))

    def update_account(self, identity_id: str, payload: dict) -> dict:
        data = load_or_raise(user_update_schema, payload, "All fields are required.")
        session = self.storage.get_session()
        user = self._get(identity_id)

        taken = (
            session.query(User.id)
            .filter(User.email == data["email"], User.id != identity_id)
            .first()
        )
        if taken:
            raise Conflict("Email already registered")

        user.full_name = data["full_name"]
        user.email = data["email"]
        self.storage.new(user)
        self.storage.save()
        return user_out_schema.dump(user)

    def update_avatar(self, identity_id: str, avatar: Optional[str]) -> dict:
        if not has_text(avatar):
            raise InvalidInput("Avatar file is missing")
        user = self._get(identity_id)
        user.avatar = avatar.strip()
        self.storage.new(user)
        self.storage.save()
        return user_out_schema.dump(user)

    def update_cover_image(self, identity_id: str, cover_image: Optional[str]) -> dict:
        if not has_text(cover_image):
            raise InvalidInput("Cover image file is missing")
        user = self._get(identity_id)
        user.cover_image = cover_image.strip()
        self.storage.new(user)
        self.storage.save()
        return user_out_schema.dump(user)
