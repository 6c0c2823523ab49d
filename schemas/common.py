from datetime import date, datetime, timezone
from typing import Any, Type

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def to_date(value: Any) -> date:
    """
    Reduce a date-ish input to a calendar date.
    ISO datetimes are converted to UTC first, so "2002-05-15T18:30:00Z" -> 2002-05-15.
    Raises ValueError on anything unparsable.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return value
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("date is empty")
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"Invalid date '{text}', expected YYYY-MM-DD")

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date()


class CamelModel(BaseModel):
    """JSON keys are camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class StrictCamelModel(CamelModel):
    # update contracts: unknown keys are rejected instead of silently merged
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


def dump(schema: Type[BaseModel], obj: Any) -> dict:
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


def dump_many(schema: Type[BaseModel], objs) -> list:
    return [dump(schema, o) for o in objs]
