"""
Response normalizer.

The remote authority's envelope is not version-locked to this client, so
collections arrive in several shapes. Each shape has one matcher; matchers
are tried in order and the first that returns a list wins:

  1. the payload is already a list
  2. ``payload["data"]`` is a list
  3. a container-named field (``bookings``, ``venues``, ``items``, ...) is a list
  4. ``payload["data"]["data"]`` is a list

Nothing matching is not an error for readers: they get an empty list and a
``shape_mismatch`` warning in the log.
"""

from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from venue_admin.core.errors import ShapeMismatch
from venue_admin.core.logging import get_logger
from venue_admin.schemas.common import Pagination

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

CONTAINER_FIELDS = ("bookings", "venues", "items", "results", "records")

ShapeMatcher = Callable[[Any], Optional[list]]


def _as_list(value: Any) -> Optional[list]:
    return value if isinstance(value, list) else None


def _data_of(payload: Any) -> Any:
    return payload.get("data") if isinstance(payload, Mapping) else None


def match_bare_list(payload: Any) -> Optional[list]:
    return _as_list(payload)


def match_data_list(payload: Any) -> Optional[list]:
    return _as_list(_data_of(payload))


def match_container_field(payload: Any) -> Optional[list]:
    if not isinstance(payload, Mapping):
        return None
    for field in CONTAINER_FIELDS:
        found = _as_list(payload.get(field))
        if found is not None:
            return found
    return None


def match_nested_data_list(payload: Any) -> Optional[list]:
    return _as_list(_data_of(_data_of(payload)))


SHAPE_MATCHERS: tuple[ShapeMatcher, ...] = (
    match_bare_list,
    match_data_list,
    match_container_field,
    match_nested_data_list,
)


def extract_collection(payload: Any, strict: bool = False) -> list[dict]:
    """
    Return the records of a collection response, in order.

    With ``strict=True`` an unrecognized shape raises ``ShapeMismatch``
    instead of degrading to an empty list.
    """
    for matcher in SHAPE_MATCHERS:
        found = matcher(payload)
        if found is not None:
            records = [item for item in found if isinstance(item, Mapping)]
            if len(records) != len(found):
                logger.warning(
                    "non_record_items_dropped",
                    shape=matcher.__name__,
                    dropped=len(found) - len(records),
                )
            return [dict(item) for item in records]

    if strict:
        raise ShapeMismatch()
    logger.warning("shape_mismatch", payload_type=type(payload).__name__)
    return []


def extract_record(payload: Any) -> Optional[dict]:
    """Single-record counterpart: the payload, its ``data`` or its ``data.data``."""
    candidates = (payload, _data_of(payload), _data_of(_data_of(payload)))
    for candidate in candidates:
        if isinstance(candidate, Mapping) and ("id" in candidate or "_id" in candidate):
            return dict(candidate)
    logger.warning("record_shape_mismatch", payload_type=type(payload).__name__)
    return None


def extract_pagination(payload: Any) -> Optional[Pagination]:
    for holder in (payload, _data_of(payload)):
        if isinstance(holder, Mapping) and isinstance(holder.get("pagination"), Mapping):
            try:
                return Pagination.model_validate(holder["pagination"])
            except PydanticValidationError:
                logger.warning("pagination_invalid", pagination=holder["pagination"])
                return None
    return None


def parse_records(records: Iterable[Mapping], model: type[ModelT]) -> list[ModelT]:
    """Validate records into ``model``; malformed ones are skipped, not fatal."""
    parsed = []
    for record in records:
        try:
            parsed.append(model.model_validate(record))
        except PydanticValidationError as e:
            logger.warning(
                "record_skipped",
                model=model.__name__,
                record_id=record.get("id", record.get("_id")),
                errors=e.error_count(),
            )
    return parsed
