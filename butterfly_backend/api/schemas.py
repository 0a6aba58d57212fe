"""
Request Validation
==================

Pydantic models for the three accepted request bodies. Shapes are
strict: unknown keys are rejected and no type coercion happens
(the string "4" is not a rating).

Each validate_* function either returns the parsed model or raises
ValidationFailure carrying the message the HTTP layer sends back.
"""
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr
from pydantic import ValidationError

from ..contracts.base import ErrorCode, ValidationFailure

INVALID_BODY_MESSAGE = "Invalid request body"
INVALID_RATING_MESSAGE = "Invalid request body - Invalid rating/review"

MIN_RATING = 0
MAX_RATING = 5


class StrictRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


class ButterflyCreateRequest(StrictRequest):
    commonName: StrictStr = Field(min_length=1)
    species: StrictStr = Field(min_length=1)
    article: StrictStr = Field(min_length=1)


class UserCreateRequest(StrictRequest):
    username: StrictStr = Field(min_length=1)


class RatingSubmitRequest(StrictRequest):
    id: StrictStr = Field(min_length=1, description="Butterfly id")
    userId: StrictStr = Field(min_length=1)
    rating: StrictInt = Field(ge=MIN_RATING, le=MAX_RATING)
    review: Optional[StrictStr] = None


RequestModel = TypeVar("RequestModel", bound=StrictRequest)


def _validate(
    model: Type[RequestModel],
    payload: Any,
    message: str,
    code: ErrorCode
) -> RequestModel:
    if not isinstance(payload, dict):
        raise ValidationFailure(message, code=code)
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailure(message, code=code) from e


def validate_butterfly(payload: Any) -> ButterflyCreateRequest:
    return _validate(ButterflyCreateRequest, payload, INVALID_BODY_MESSAGE,
                     ErrorCode.INVALID_REQUEST_BODY)


def validate_user(payload: Any) -> UserCreateRequest:
    return _validate(UserCreateRequest, payload, INVALID_BODY_MESSAGE,
                     ErrorCode.INVALID_REQUEST_BODY)


def validate_rating(payload: Any) -> RatingSubmitRequest:
    return _validate(RatingSubmitRequest, payload, INVALID_RATING_MESSAGE,
                     ErrorCode.INVALID_RATING)
