"""Catalog service - salon services offered for booking and sale"""

import logging

from sqlalchemy.orm import Session

from ...database import transaction
from ...errors import NotFoundError
from ...models import Service
from .repository import ServiceRepository
from .schemas import ServiceCreate, ServiceUpdate, format_duration

logger = logging.getLogger(__name__)

_COLUMNS = {
    "name": "name",
    "description": "description",
    "duration": "duration_minutes",
    "price": "price",
}


def service_response(service: Service) -> dict:
    return {
        "id": service.id,
        "name": service.name,
        "description": service.description,
        "duration": format_duration(service.duration_minutes),
        "durationMinutes": service.duration_minutes,
        "price": service.price or 0.0,
        "active": service.active,
        "createdAt": service.created_at,
    }


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRepository()

    def _get(self, service_id: int) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def list_services(self, include_inactive: bool = False) -> list[Service]:
        return self.repo.list_services(self.db, include_inactive)

    def get_service(self, service_id: int) -> Service:
        return self._get(service_id)

    def create_service(self, data: ServiceCreate) -> Service:
        with transaction(self.db):
            service = self.repo.add_service(
                self.db,
                name=data.name,
                description=data.description,
                duration_minutes=data.duration,
                price=data.price,
            )
        logger.info(f"✂️ Created service {service.id} ({service.name})")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self._get(service_id)
        with transaction(self.db):
            for field_name in data.model_fields_set:
                column = _COLUMNS.get(field_name)
                if column is None:
                    continue
                value = getattr(data, field_name)
                if field_name in ("name", "price") and value is None:
                    continue
                setattr(service, column, value)
        logger.info(f"✏️ Updated service {service_id}")
        return service

    def set_service_active(self, service_id: int, active: bool) -> dict:
        service = self._get(service_id)
        with transaction(self.db):
            service.active = active
        logger.info(f"{'✅ Activated' if active else '⛔ Inactivated'} service {service_id}")
        return {"message": "Service activated" if active else "Service inactivated"}
