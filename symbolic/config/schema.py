from dataclasses import dataclass, field
from typing import Optional


@dataclass
class PDDLConfig:
    domain_file: Optional[str] = None
    problem_file: Optional[str] = None


@dataclass
class ValidationConfig:
    verbose: bool = False
    fail_on_error: bool = True      # non-zero exit code when type checking fails


@dataclass
class LoggingConfig:
    level: str = "INFO"             # "DEBUG", "INFO", "WARNING", ...


@dataclass
class EngineConfig:
    pddl: PDDLConfig = field(default_factory=PDDLConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
