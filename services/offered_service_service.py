from sqlalchemy.exc import IntegrityError

from models import db
from models.offered_service import OfferedService
from repositories import offered_services as service_repo
from repositories import reservations as reservation_repo
from repositories import slots as slot_repo
from repositories import users as user_repo
from security.rbac import ensure_admin, ensure_admin_or_owner, ensure_authenticated
from services.errors import (
    AccessDeniedError,
    DuplicateServiceNameError,
    OfferedServiceNotFoundError,
    ServiceInUseError,
    UserNotFoundError,
)
from services.requester import ADMIN, PROVIDER
from services.validation import parse_bool, parse_name, parse_positive_int, parse_price
from utils.audit import log_event
from utils.identifiers import parse_public_id
from utils.time import utcnow


def _normalize(text: str) -> str:
    return (text or "").strip().lower()


def _load(service_id):
    service = service_repo.find_service_by_public_id(parse_public_id(service_id, "service"))
    if not service:
        raise OfferedServiceNotFoundError(f"Service with id {service_id} not found.")
    return service


def _duplicate_name(name):
    return DuplicateServiceNameError(f"A service with the name '{name}' already exists for this owner.")


def create_offered_service(requester, owner_id, name, description=None, default_duration_minutes=None,
                           price=None, capacity=None, is_active=True):
    ensure_admin_or_owner(
        requester, owner_id,
        f"You do not have permission to create a service for user ID {owner_id}.",
    )
    owner = user_repo.find_user_by_id(owner_id)
    if not owner:
        raise UserNotFoundError(f"Owner user with ID {owner_id} not found.")
    if not owner.role_names.intersection({PROVIDER, ADMIN}):
        raise AccessDeniedError("Only providers can offer services.")

    name = parse_name(name)
    if service_repo.exists_by_name_and_owner(_normalize(name), owner.id):
        raise _duplicate_name(name)

    now = utcnow()
    service = OfferedService(
        owner_id=owner.id,
        name=name,
        name_normalized=_normalize(name),
        description=description,
        default_duration_minutes=parse_positive_int(default_duration_minutes, "Default duration"),
        price=parse_price(price) or 0,
        capacity=parse_positive_int(capacity, "Capacity") or 1,
        is_active=True if is_active is None else parse_bool(is_active, "is_active"),
        created_at=now,
        updated_at=now,
    )
    try:
        service_repo.save_service(service)
        log_event(
            "SERVICE_CREATE",
            user_id=requester.user_id,
            entity="offered_service",
            entity_id=service.public_id,
            metadata={"owner_id": owner.id, "name": name},
            commit=False,
        )
        db.session.commit()
    except IntegrityError:
        # uq_service_owner_name backstop for a concurrent create
        db.session.rollback()
        raise _duplicate_name(name)
    return service


def get_offered_service(service_id):
    return _load(service_id)


def update_offered_service(requester, service_id, name=None, description=None, default_duration_minutes=None,
                           price=None, capacity=None, is_active=None):
    """Partial update: only arguments that are not ``None`` are applied."""
    service = _load(service_id)
    ensure_admin_or_owner(requester, service.owner_id, "You do not have permission to update this service.")

    changes = {}
    if name is not None:
        name = parse_name(name)
        if _normalize(name) != service.name_normalized and service_repo.exists_by_name_and_owner(
            _normalize(name), service.owner_id, exclude_service_id=service.id
        ):
            raise _duplicate_name(name)
        changes["name"] = name
        changes["name_normalized"] = _normalize(name)
    if description is not None:
        changes["description"] = description
    if default_duration_minutes is not None:
        changes["default_duration_minutes"] = parse_positive_int(default_duration_minutes, "Default duration")
    if price is not None:
        changes["price"] = parse_price(price)
    if capacity is not None:
        changes["capacity"] = parse_positive_int(capacity, "Capacity")
    if is_active is not None:
        changes["is_active"] = parse_bool(is_active, "is_active")

    for field, value in changes.items():
        setattr(service, field, value)

    try:
        service_repo.save_service(service)
        log_event(
            "SERVICE_UPDATE",
            user_id=requester.user_id,
            entity="offered_service",
            entity_id=service.public_id,
            metadata={"fields": sorted(k for k in changes if k != "name_normalized")},
            commit=False,
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise _duplicate_name(name)
    return service


def delete_offered_service(requester, service_id):
    service = _load(service_id)
    ensure_admin_or_owner(requester, service.owner_id, "You do not have permission to delete this service.")

    now = utcnow()
    if slot_repo.has_future_time_slots(service.id, now):
        raise ServiceInUseError(
            f"Cannot delete service {service.public_id} because it has future time slots."
        )
    if reservation_repo.count_active_reservations_in_window(service.id, now) > 0:
        raise ServiceInUseError(
            f"Cannot delete service {service.public_id} because it has active reservations."
        )

    public_id = service.public_id
    service_repo.delete_service(service)
    log_event(
        "SERVICE_DELETE",
        user_id=requester.user_id,
        entity="offered_service",
        entity_id=public_id,
        commit=False,
    )
    db.session.commit()
    return True


def list_my_services(requester, name_contains=None, active_only=False):
    ensure_authenticated(requester, "User must be authenticated to view their own services.")
    return service_repo.find_services(
        owner_id=requester.user_id, name_contains=name_contains, active_only=active_only
    )


def search_services(name_contains=None, owner_id=None, active_only=True):
    return service_repo.find_services(owner_id=owner_id, name_contains=name_contains, active_only=active_only)


def list_all_services(requester, name_contains=None, owner_id=None, active_only=False):
    ensure_admin(requester, "Only administrators can view all services in the system.")
    if owner_id is not None and not user_repo.find_user_by_id(owner_id):
        raise UserNotFoundError(f"Owner user with ID {owner_id} not found.")
    return service_repo.find_services(owner_id=owner_id, name_contains=name_contains, active_only=active_only)
