from typing import Optional

from sqlalchemy.orm import Session

from ...models import Service


class ServiceRepository:
    """Repository for the service catalog"""

    @staticmethod
    def list_services(db: Session, include_inactive: bool = False) -> list[Service]:
        query = db.query(Service)
        if not include_inactive:
            query = query.filter(Service.active.is_(True))
        return query.order_by(Service.name).all()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def add_service(db: Session, **fields) -> Service:
        service = Service(**fields)
        db.add(service)
        db.flush()
        return service
