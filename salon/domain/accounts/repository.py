"""Account repository - users, addresses, credentials and role memberships"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Address, Credential, User, UserRole

ADDRESS_FIELDS = ("postal_code", "street", "district", "city", "complement")


class AccountRepository:
    """Repository for account database operations. Writes are flushed, the caller commits."""

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return (
            db.query(User)
            .options(joinedload(User.address), joinedload(User.roles))
            .filter(User.id == user_id)
            .first()
        )

    @staticmethod
    def get_user_with_role(db: Session, user_id: int, role: str) -> Optional[User]:
        return (
            db.query(User)
            .options(joinedload(User.address), joinedload(User.roles))
            .join(UserRole, UserRole.user_id == User.id)
            .filter(User.id == user_id, UserRole.role == role)
            .first()
        )

    @staticmethod
    def get_user_with_any_role(db: Session, user_id: int, roles: tuple) -> Optional[User]:
        return (
            db.query(User)
            .options(joinedload(User.address), joinedload(User.roles))
            .join(UserRole, UserRole.user_id == User.id)
            .filter(User.id == user_id, UserRole.role.in_(roles))
            .first()
        )

    @staticmethod
    def list_users_with_role(db: Session, role, include_inactive: bool = False) -> list[User]:
        """Users holding `role` (a role name or a tuple of them), by name"""
        roles = (role,) if isinstance(role, str) else tuple(role)
        query = (
            db.query(User)
            .options(joinedload(User.address), joinedload(User.roles))
            .join(UserRole, UserRole.user_id == User.id)
            .filter(UserRole.role.in_(roles))
        )
        if not include_inactive:
            query = query.filter(User.active.is_(True), UserRole.active.is_(True))
        return query.order_by(User.name).all()

    @staticmethod
    def email_taken(db: Session, email: str, exclude_user_id: Optional[int] = None) -> bool:
        query = db.query(User.id).filter(func.lower(User.email) == email.lower())
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.first() is not None

    @staticmethod
    def get_credential_by_login(db: Session, login: str) -> Optional[Credential]:
        return (
            db.query(Credential)
            .filter(func.lower(Credential.login_email) == login.strip().lower())
            .first()
        )

    @staticmethod
    def get_roles(db: Session, user_id: int, active_only: bool = True) -> list[UserRole]:
        query = db.query(UserRole).filter(UserRole.user_id == user_id)
        if active_only:
            query = query.filter(UserRole.active.is_(True))
        return query.order_by(UserRole.id).all()

    @staticmethod
    def get_role(db: Session, user_id: int, role: str) -> Optional[UserRole]:
        return (
            db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role == role)
            .first()
        )

    @staticmethod
    def get_address(db: Session, address_id: int) -> Optional[Address]:
        return db.query(Address).filter(Address.id == address_id).first()

    @staticmethod
    def find_address(db: Session, **fields) -> Optional[Address]:
        """Exact match on every address field, NULL matching NULL"""
        query = db.query(Address)
        for name in ADDRESS_FIELDS:
            value = fields.get(name)
            column = getattr(Address, name)
            query = query.filter(column.is_(None) if value is None else column == value)
        return query.first()

    @staticmethod
    def find_or_create_address(db: Session, **fields) -> Address:
        address = AccountRepository.find_address(db, **fields)
        if address:
            return address
        address = Address(**{name: fields.get(name) for name in ADDRESS_FIELDS})
        db.add(address)
        db.flush()
        return address

    @staticmethod
    def add_user(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.flush()
        return user

    @staticmethod
    def add_credential(db: Session, user_id: int, login_email: str, password_hash: Optional[str]) -> Credential:
        credential = Credential(user_id=user_id, login_email=login_email, password_hash=password_hash)
        db.add(credential)
        db.flush()
        return credential

    @staticmethod
    def add_role(db: Session, user_id: int, role: str, **flags) -> UserRole:
        membership = UserRole(user_id=user_id, role=role, **flags)
        db.add(membership)
        db.flush()
        return membership

    @staticmethod
    def set_active(db: Session, user: User, active: bool) -> None:
        """Flip the person and every role membership together"""
        user.active = active
        db.query(UserRole).filter(UserRole.user_id == user.id).update(
            {UserRole.active: active}, synchronize_session=False
        )
        db.flush()
