# Quiz pipeline utilities
from .exceptions import (
    StudiaError,
    ValidationError,
    NotFoundError,
    NoEnabledFilesError,
    NoContentFoundError,
    RateLimitError,
    QueueUnavailableError,
    ParseError,
    FinalizationError,
    StorageError
)

from .model_config import (
    ModelConfig,
    ModelProvider,
    MODEL_CONFIGS,
    DEFAULT_MODEL
)

__all__ = [
    'StudiaError',
    'ValidationError',
    'NotFoundError',
    'NoEnabledFilesError',
    'NoContentFoundError',
    'RateLimitError',
    'QueueUnavailableError',
    'ParseError',
    'FinalizationError',
    'StorageError',
    'ModelConfig',
    'ModelProvider',
    'MODEL_CONFIGS',
    'DEFAULT_MODEL'
]
