"""Common schemas: camelCase base models and shared responses."""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Python attributes in snake_case, JSON in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartialUpdate(CamelModel):
    """Base for PATCH bodies.

    Only fields the client sent are forwarded (`changes()`); fields named in
    `non_nullable` may be omitted but not sent as null.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            nulls = sorted(
                key
                for key, value in data.items()
                if value is None and (key in cls.non_nullable or to_camel(key) in cls.non_nullable)
            )
            if nulls:
                raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return data

    def changes(self) -> dict[str, Any]:
        """Sent fields keyed by their JSON (camelCase) names, in model field order."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class DeletedResponse(BaseModel):
    deleted: str

