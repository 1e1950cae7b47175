"""
SFL Studio - Persona-grounded podcast dialogue generation
Systemic Functional Linguistics profiles drive multi-speaker scripts
"""

__version__ = "1.0.0"

# Export central configuration
from .config import config, StudioConfig, AVAILABLE_MODELS

# Export logging utilities
from .logging_config import get_logger, StudioLogger

# Export exceptions
from .exceptions import (
    StudioError,
    EmptyResponseError,
    MalformedResponseError,
    InvalidFormatError,
    MissingCredentialsError,
    ProviderError,
    SessionNotFoundError,
    PersonaNotFoundError,
    LineNotFoundError,
    ValidationError,
    ConfigurationError,
    create_error_response
)

__all__ = [
    'config', 'StudioConfig', 'AVAILABLE_MODELS',
    'get_logger', 'StudioLogger',
    'StudioError', 'EmptyResponseError', 'MalformedResponseError',
    'InvalidFormatError', 'MissingCredentialsError', 'ProviderError',
    'SessionNotFoundError', 'PersonaNotFoundError', 'LineNotFoundError',
    'ValidationError', 'ConfigurationError', 'create_error_response',
    '__version__'
]
