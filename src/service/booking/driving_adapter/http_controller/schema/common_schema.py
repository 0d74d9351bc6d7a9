from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


SUCCESS_CODE = 1000

T = TypeVar('T')


class CamelModel(BaseModel):
    """Wire models speak camelCase; python code uses the field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint, success and error alike."""

    model_config = {
        'json_schema_extra': {'example': {'code': 1000, 'message': 'success', 'result': {}}}
    }

    code: int = SUCCESS_CODE
    message: str = 'success'
    result: Optional[T] = None


def ok(result: T, message: str = 'success') -> ApiResponse[T]:
    return ApiResponse(code=SUCCESS_CODE, message=message, result=result)
