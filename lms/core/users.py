import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from lms.core.db import atomic
from lms.core.models import User, UserRole
from lms.core.utils import required_text
from lms.core.exceptions import UserNotFoundError, EmailExistsError

logger = logging.getLogger(__name__)


class UserRepository:

    def __init__(self, session):
        self.session = session

    def find_all(self, offset: Optional[int] = None, limit: Optional[int] = None) -> List[User]:
        return User.get_many(self.session, offset=offset, limit=limit, order_by=[User.id])

    def find_by_id(self, user_id: int) -> User:
        if user := self.session.get(User, user_id):
            return user
        raise UserNotFoundError("Borrower not found")

    def lock(self, user_id: int) -> User:
        """Row lock on the borrower; serializes checks on their active loans."""
        user = self.session.query(User).filter(
            User.id == user_id
        ).with_for_update().first()
        if not user:
            raise UserNotFoundError("Borrower not found")
        return user

    def create(self, first_name: str, last_name: str, email: str, role=UserRole.STUDENT) -> User:
        first_name = required_text(first_name, "firstName", min_length=2)
        last_name = required_text(last_name, "lastName", min_length=2)
        email = required_text(email, "email").lower()
        if self.session.query(User.id).filter(User.email == email).first():
            raise EmailExistsError("Email already registered")

        with atomic(self.session):
            user = User(
                first_name=first_name,
                last_name=last_name,
                email=email,
                role=UserRole(role)
            )
            self.session.add(user)
            try:
                self.session.flush()
            except IntegrityError as e:
                raise EmailExistsError("Email already registered") from e
        logger.info(f"Registered user {user.id}")
        return user
