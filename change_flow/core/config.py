import os
import yaml
import logging
from typing import List, Optional, Dict, Any, Mapping
from pathlib import Path
from pydantic import BaseModel, Field

# Default configuration values
DEFAULT_CONFIG_PATH = "changeflow.config.yaml"
DEFAULT_PROJECT_ROOT = "."
DEFAULT_BASE_REF = "HEAD~1"
DEFAULT_HEAD_REF = "HEAD"
DEFAULT_OUTPUT_DIR = "test-results"
DEFAULT_TESTABLE_EXTENSIONS = [".js", ".jsx", ".ts", ".tsx", ".mjs"]
DEFAULT_EXCLUDED_PATHS = ["node_modules", "dist", "build", ".git", "coverage"]
DEFAULT_FALLBACK_GLOBS = ["source/**/*"]
DEFAULT_UI_BASE_URL = "http://localhost:3000"
DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_RESOLUTION_WORKERS = 4
DEFAULT_ANALYSIS_WORKERS = 1
DEFAULT_TIER_TIMEOUT_SECONDS = None
DEFAULT_AUTH_CHECK_LINES = [10, 20]
DEFAULT_VISUAL_LINE_THRESHOLD = 10
DEFAULT_VISUAL_COMPONENT_SPAN = 50

# Only these two variables are read from the environment.
ENV_OVERRIDES = {
    "TEST_URL": "ui_base_url",
    "API_URL": "api_base_url",
}

CHANGE_ANALYSIS_FILE = "change-analysis.json"
TEST_TARGETS_FILE = "test-targets.json"
GENERATED_TARGETS_FILE = "generated-targets.json"
HEALING_REPORT_FILE = "healing-stats.json"


class ChangeFlowConfig(BaseModel):
    """
    Central configuration model for change analysis and healing runs.
    """
    project_root: str = Field(default=DEFAULT_PROJECT_ROOT)
    base_ref: str = Field(default=DEFAULT_BASE_REF)
    head_ref: str = Field(default=DEFAULT_HEAD_REF)
    output_dir: str = Field(default=DEFAULT_OUTPUT_DIR)
    testable_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_TESTABLE_EXTENSIONS))
    excluded_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_PATHS))
    fallback_globs: List[str] = Field(default_factory=lambda: list(DEFAULT_FALLBACK_GLOBS))

    # Live surfaces
    ui_base_url: str = Field(default=DEFAULT_UI_BASE_URL)
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL)

    # Concurrency
    resolution_workers: int = Field(default=DEFAULT_RESOLUTION_WORKERS, ge=1)
    analysis_workers: int = Field(default=DEFAULT_ANALYSIS_WORKERS, ge=1)
    tier_timeout_seconds: Optional[float] = Field(default=DEFAULT_TIER_TIMEOUT_SECONDS)

    # Target generation heuristics
    auth_check_lines: List[int] = Field(default_factory=lambda: list(DEFAULT_AUTH_CHECK_LINES))
    visual_line_threshold: int = Field(default=DEFAULT_VISUAL_LINE_THRESHOLD)
    visual_component_span: int = Field(default=DEFAULT_VISUAL_COMPONENT_SPAN)

    # Allow extra fields for flexibility
    class Config:
        extra = "allow"

    def root(self) -> Path:
        return Path(self.project_root).resolve()

    def output_path(self) -> Path:
        output = Path(self.output_dir)
        if output.is_absolute():
            return output
        return self.root() / output

    def change_analysis_path(self) -> Path:
        return self.output_path() / CHANGE_ANALYSIS_FILE

    def test_targets_path(self) -> Path:
        return self.output_path() / TEST_TARGETS_FILE

    def generated_targets_path(self) -> Path:
        return self.output_path() / GENERATED_TARGETS_FILE

    def healing_report_path(self) -> Path:
        return self.output_path() / HEALING_REPORT_FILE

    def auth_window(self) -> tuple:
        if len(self.auth_check_lines) != 2:
            raise ValueError("auth_check_lines must hold exactly two line numbers")
        low, high = self.auth_check_lines
        return (min(low, high), max(low, high))


def load_config(
    config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ChangeFlowConfig:
    """
    Load configuration from file, environment and overrides.

    Priority:
    1. CLI Arguments (if provided and not None)
    2. Environment (TEST_URL, API_URL)
    3. Config File (if provided or found at default path)
    4. Default Values

    Args:
        config_path: Path to the YAML config file. If None, tries 'changeflow.config.yaml'.
        cli_args: Dictionary of CLI arguments to override config values.
        environ: Environment mapping; defaults to os.environ.

    Returns:
        ChangeFlowConfig: The resolved configuration object.
    """
    config_data: Dict[str, Any] = {}

    # 1. Load from file
    target_path = config_path if config_path else DEFAULT_CONFIG_PATH
    path_obj = Path(target_path)

    if path_obj.exists() and path_obj.is_file():
        try:
            with open(path_obj, 'r', encoding='utf-8') as f:
                file_data = yaml.safe_load(f)
                if isinstance(file_data, dict):
                    config_data.update(file_data)
                elif file_data is not None:
                    logging.warning(f"Ignoring config file {target_path}: top level is not a mapping")
            logging.info(f"Loaded configuration from {target_path}")
        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Failed to load config file {target_path}: {e}")
    elif config_path:
        # If user explicitly provided a path that doesn't exist, warn them
        logging.warning(f"Config file not found at explicit path: {config_path}")
    else:
        logging.info(f"No config file found at {DEFAULT_CONFIG_PATH}, using defaults.")

    # 2. Environment
    env = os.environ if environ is None else environ
    for variable, field_name in ENV_OVERRIDES.items():
        value = env.get(variable)
        if value:
            config_data[field_name] = value

    # 3. Override with CLI args
    if cli_args:
        for key, value in cli_args.items():
            if value is not None:
                config_data[key] = value

    # 4. Create and validate config object
    return ChangeFlowConfig(**config_data)
