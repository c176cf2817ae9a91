"""
Shared schema pieces: camelCase wire naming, pagination and list pages.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from venue_admin.core.errors import ValidationError

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready body with camelCase keys and unset optionals dropped."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class Pagination(CamelModel):
    page: int = 1
    limit: Optional[int] = None
    total: Optional[int] = None
    total_pages: Optional[int] = None
    has_next: Optional[bool] = None
    has_prev: Optional[bool] = None


class Page(BaseModel, Generic[T]):
    items: list[T]
    pagination: Optional[Pagination] = None


M = TypeVar("M", bound=BaseModel)


def parse_input(model: type[M], data: Any) -> M:
    """Validate user input, turning pydantic failures into field-level errors."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e
