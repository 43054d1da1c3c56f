"""
Shared base for stored entity records
"""

from datetime import datetime
from typing import Annotated, Any, ClassVar, Dict, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from pill_tracker.exceptions import ValidationError
from pill_tracker.utils.helpers import to_local_datetime

# All timestamps are held as naive local datetimes so day arithmetic never
# mixes aware and naive values.
LocalDateTime = Annotated[datetime, AfterValidator(to_local_datetime)]


class RecordModel(BaseModel):
    """Base model for a record stored in one of the collections"""

    id: Optional[str] = None
    created_at: Optional[LocalDateTime] = Field(None, alias='createdAt')
    updated_at: Optional[LocalDateTime] = Field(None, alias='updatedAt')

    # Messages used when a required field is missing entirely
    required_messages: ClassVar[Dict[str, str]] = {}

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    @classmethod
    def field_aliases(cls) -> Dict[str, str]:
        """Map attribute names to stored (camelCase) field names"""
        return {name: field.alias or name for name, field in cls.model_fields.items()}

    @classmethod
    def normalize_keys(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Rewrite attribute-name keys to their stored field names"""
        aliases = cls.field_aliases()
        return {aliases.get(key, key): value for key, value in data.items()}

    @classmethod
    def from_record(cls, data: Dict[str, Any]):
        """Parse a stored record, converting type errors to ValidationError"""
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            errors = {}
            for error in e.errors():
                field = str(error['loc'][0]) if error['loc'] else cls.__name__
                if error['type'] == 'missing':
                    errors.setdefault(field, cls.required_messages.get(field, f"{field} is required"))
                else:
                    errors.setdefault(field, error['msg'])
            raise ValidationError(errors) from e

    @classmethod
    def validated(cls, data: Dict[str, Any]):
        """Parse and check every field constraint, raising ValidationError"""
        model = cls.from_record(data)
        errors = model.check()
        if errors:
            raise ValidationError(errors)
        return model

    def check(self) -> Dict[str, str]:
        """Return field -> message for every violated constraint"""
        return {}

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the JSON-compatible stored form"""
        return self.model_dump(mode='json', by_alias=True)
