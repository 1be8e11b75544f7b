from enum import Enum
from typing import List, Optional, Union
from pydantic import BaseModel, Field


class FieldKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    FILE = "file"
    TEXTAREA = "textarea"


class RuleKind(str, Enum):
    REQUIRED = "required"
    PATTERN = "pattern"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"


class ValidationRule(BaseModel):
    kind: RuleKind
    value: Optional[Union[int, str]] = None
    message: Optional[str] = None


class SelectOption(BaseModel):
    label: str
    value: str


class FormField(BaseModel):
    name: str
    label: str
    type: FieldKind
    placeholder: Optional[str] = None
    options: List[SelectOption] = Field(default_factory=list)
    multiple: bool = False
    disabled: bool = False
    rules: List[ValidationRule] = Field(default_factory=list)

    @property
    def required(self) -> bool:
        return any(r.kind == RuleKind.REQUIRED for r in self.rules)


class FormSchema(BaseModel):
    id: str
    title: str
    fields: List[FormField]


class FieldError(BaseModel):
    field: str
    rule: RuleKind
    message: str
