"""Configuration repository - key/value settings rows"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Configuration


class ConfigurationRepository:
    """Repository for configuration rows"""

    @staticmethod
    def get_all(db: Session) -> dict[str, str]:
        return {row.key: row.value for row in db.query(Configuration).order_by(Configuration.key).all()}

    @staticmethod
    def get_value(db: Session, key: str) -> Optional[str]:
        row = db.query(Configuration).filter(Configuration.key == key).first()
        return row.value if row else None

    @staticmethod
    def set_value(db: Session, key: str, value: str) -> Configuration:
        """Insert or overwrite a row. The caller commits."""
        row = db.query(Configuration).filter(Configuration.key == key).first()
        if row:
            row.value = value
        else:
            row = Configuration(key=key, value=value)
            db.add(row)
        return row

    @staticmethod
    def ensure_value(db: Session, key: str, default: str) -> bool:
        """Insert `key` with `default` when missing. Returns True if a row was created."""
        if db.query(Configuration).filter(Configuration.key == key).first():
            return False
        db.add(Configuration(key=key, value=default))
        return True
