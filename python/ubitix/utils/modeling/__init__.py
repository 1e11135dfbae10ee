from .base_schema import BaseSchema
from .exceptions import AggregateDataValidationError, ConfigError, DataParsingError, DataValidationError
from .parsing import DataFormat, normalize_keys, parse_json, parse_yaml, try_to_parse

__all__ = [
    "AggregateDataValidationError",
    "BaseSchema",
    "ConfigError",
    "DataFormat",
    "DataParsingError",
    "DataValidationError",
    "normalize_keys",
    "parse_json",
    "parse_yaml",
    "try_to_parse",
]
