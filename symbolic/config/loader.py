import yaml
from .schema import EngineConfig, PDDLConfig, ValidationConfig, LoggingConfig
from ..errors import MalformedInputError


def load_config(path: str | None) -> EngineConfig:
    """Read a YAML config file into an EngineConfig. `None` gives the defaults."""
    if path is None:
        return EngineConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise MalformedInputError(f"Unable to read config file: {path}") from e
    except yaml.YAMLError as e:
        raise MalformedInputError(f"Invalid YAML in config file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise MalformedInputError(f"Config file {path} must contain a mapping")

    pddl_data = raw.get("pddl") or {}
    validation_data = raw.get("validation") or {}
    logging_data = raw.get("logging") or {}

    return EngineConfig(
        pddl=PDDLConfig(
            domain_file=pddl_data.get("domain_file"),
            problem_file=pddl_data.get("problem_file"),
        ),
        validation=ValidationConfig(
            verbose=bool(validation_data.get("verbose", False)),
            fail_on_error=bool(validation_data.get("fail_on_error", True)),
        ),
        logging=LoggingConfig(
            level=str(logging_data.get("level", "INFO")).upper(),
        ),
    )
