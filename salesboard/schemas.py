"""Pydantic models for JSON request bodies."""
import logging
import re
from typing import Any, Dict, Literal, Optional

from pydantic import AnyUrl, BaseModel, Field, TypeAdapter, ValidationError as PydanticValidationError, field_validator

from salesboard.exceptions import ValidationError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
# Any absolute URL, app deep links included
_URL_ADAPTER = TypeAdapter(AnyUrl)

MIN_PASSWORD_LENGTH = 6
MAX_TITLE_LENGTH = 200


def is_valid_email(email: str) -> bool:
    """Validate email format."""
    return EMAIL_PATTERN.match(email or '') is not None


class _EmailMixin(BaseModel):
    email: str

    @field_validator('email')
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_email(value):
            raise ValueError('Invalid email format')
        return value


class LoginRequest(_EmailMixin):
    password: str = Field(..., min_length=1)


class RegisterRequest(_EmailMixin):
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    first_name: str = Field(..., min_length=1, alias='firstName')
    last_name: str = Field(..., min_length=1, alias='lastName')


class ForgotPasswordRequest(_EmailMixin):
    redirect_to: str = Field(..., alias='redirectTo')

    @field_validator('redirect_to')
    @classmethod
    def check_url(cls, value: str) -> str:
        try:
            _URL_ADAPTER.validate_python(value)
        except PydanticValidationError:
            raise ValueError('Invalid URL')
        return value


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class TextToSQLRequest(BaseModel):
    question: Optional[str] = None
    conversation_id: Optional[str] = Field(None, alias='conversationId')


class CreateConversationRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)


class UpdateConversationRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)


ConditionTypeName = Literal['daily_sales_threshold', 'item_sales_threshold', 'location_sales_threshold']
FrequencyName = Literal['once', 'daily', 'weekly']


class CreateAlertRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = None
    condition_type: ConditionTypeName = Field(..., alias='conditionType')
    condition_data: Dict[str, Any] = Field(..., alias='conditionData')
    frequency: FrequencyName
    is_active: bool = Field(True, alias='isActive')


class UpdateAlertRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = None
    condition_type: Optional[ConditionTypeName] = Field(None, alias='conditionType')
    condition_data: Optional[Dict[str, Any]] = Field(None, alias='conditionData')
    frequency: Optional[FrequencyName] = None
    is_active: Optional[bool] = Field(None, alias='isActive')


class UpdateNotificationRequest(BaseModel):
    status: Literal['unread', 'read']


def parse_body(model, payload):
    """
    Validate a decoded JSON body against a model.

    Raises:
        ValidationError: body missing, not an object, or failing the model
    """
    if not isinstance(payload, dict):
        raise ValidationError('Invalid input')
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        details = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        logger.info(f"[VALIDATION] {model.__name__} rejected: {'; '.join(details)}")
        raise ValidationError('Invalid input')
