from functools import wraps
from typing import Any, Callable, TypeVar, cast

from botocore.exceptions import BotoCoreError, ClientError

F = TypeVar("F", bound=Callable[..., Any])


class AnomalyPipelineError(Exception):
    pass


class InvalidInput(AnomalyPipelineError, ValueError):
    pass


class ConfigurationError(AnomalyPipelineError):
    pass


class SerializationError(AnomalyPipelineError, ValueError):
    pass


class ExternalServiceError(AnomalyPipelineError):
    """Failure returned by S3, CloudWatch or SageMaker."""

    def __init__(self, service: str, operation: str, message: str):
        super().__init__(f"{service}.{operation} failed: {message}")
        self.service = service
        self.operation = operation


def external_call(service: str) -> Callable[[F], F]:
    """
    Converts botocore errors raised by the decorated collaborator method into
    ExternalServiceError. The original exception stays available as __cause__.
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except (ClientError, BotoCoreError) as exc:
                raise ExternalServiceError(service, func.__name__, str(exc)) from exc

        return cast(F, wrapper)

    return decorator
