from pydantic import BaseModel, EmailStr, ValidationError, field_validator

from newsletter.core.errors import SubscriptionValidationError

MAX_NAME_LENGTH = 256
FORBIDDEN_NAME_CHARACTERS = frozenset('/()"<>\\{}')


class NewSubscriber(BaseModel):
    """A validated name/email pair, ready to be stored."""

    name: str
    email: EmailStr

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        if len(value) > MAX_NAME_LENGTH:
            raise ValueError(f"name must be at most {MAX_NAME_LENGTH} characters")
        forbidden = FORBIDDEN_NAME_CHARACTERS.intersection(value)
        if forbidden:
            raise ValueError(f"name contains forbidden characters: {''.join(sorted(forbidden))}")
        return value

    @classmethod
    def parse(cls, name: str, email: str) -> "NewSubscriber":
        try:
            return cls(name=name, email=email)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise SubscriptionValidationError(problems) from e

