"""YAML configuration loader."""

import hashlib
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from shufflix.config.schemas import ShufflixConfig


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when a configuration file cannot be loaded or validated."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")

    def to_dict(self) -> dict[str, object]:
        """Convert error to dictionary for logging."""
        return {"file_path": self.file_path, "errors": list(self.errors)}


def load_config(path: Path | None) -> ShufflixConfig:
    """Load and validate a configuration file.

    Args:
        path: Path to a YAML file, or None for built-in defaults.

    Returns:
        Validated, immutable configuration.

    Raises:
        ConfigValidationError: If the file is missing, is not valid YAML,
            or fails schema validation.
    """
    if path is None:
        return ShufflixConfig()

    log = logger.bind(component="config", file_path=str(path))

    try:
        content = path.read_bytes()
    except FileNotFoundError as e:
        log.error("config_file_not_found", error=str(e))
        raise ConfigValidationError(
            [{"loc": "file", "msg": str(e), "type": "file_not_found"}],
            str(path),
        ) from e

    try:
        data = yaml.safe_load(content.decode("utf-8")) or {}
    except yaml.YAMLError as e:
        log.error("config_yaml_parse_error", error=str(e))
        raise ConfigValidationError(
            [{"loc": "yaml", "msg": str(e), "type": "yaml_parse_error"}],
            str(path),
        ) from e

    try:
        config = ShufflixConfig.model_validate(data)
    except ValidationError as e:
        errors = [
            {
                "loc": ".".join(str(loc) for loc in err["loc"]),
                "msg": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ]
        log.error(
            "config_validation_failed",
            validation_error_count=len(errors),
            errors=errors,
        )
        raise ConfigValidationError(errors, str(path)) from e

    log.info(
        "config_loaded",
        file_sha256=hashlib.sha256(content).hexdigest(),
        prefetch_threshold=config.deck.prefetch_threshold,
        feed_count=len(config.deck.feeds),
    )
    return config
