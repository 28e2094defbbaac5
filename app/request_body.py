"""
Lavandaria API — JSON Body Dependency
=======================================

What:  Reads and validates a JSON request body as an ordinary dependency.
How:   `json_body(Model)` returns a dependency that awaits request.json()
       and validates the result with the pydantic model.
When:  Used by every guarded route that takes a body, declared after the
       role guard in the signature.

FastAPI parses body parameters before it resolves any dependency, so a
guarded route with a plain `body: Model` parameter answers an anonymous
caller's broken body with 400 instead of 401. Reading the body in a
dependency declared after the guard keeps the order
role gate → body validation → handler.

Failures raise RequestValidationError, rendered by the global handler as
400 VALIDATION_ERROR with `details`:
    unparseable JSON    → field "body", message "Invalid JSON body"
    schema violations   → one entry per pydantic error
"""

from typing import Awaitable, Callable, Type, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def json_body(model: Type[ModelT]) -> Callable[[Request], Awaitable[ModelT]]:
    """Dependency factory: the request body parsed as `model`."""

    async def dependency(request: Request) -> ModelT:
        try:
            data = await request.json()
        except ValueError:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise RequestValidationError(
                [{"loc": ("body",), "msg": "Invalid JSON body", "type": "json_invalid"}]
            )
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise RequestValidationError(
                exc.errors(include_url=False, include_context=False)
            ) from exc

    return dependency
