"""Run configuration assembled from defaults, a config file and CLI overrides."""

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import BeforeValidator, ValidationError

from yuitest_driver.errors import ConfigurationLoadError, ConfigurationValueError
from yuitest_driver.models.base import Model

log = logging.getLogger(__name__)

DEFAULTS_RESOURCE = "defaults.yaml"


def _as_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int | float):
        return str(value)
    return value


Setting = Annotated[str, BeforeValidator(_as_text)]


class RunConfiguration(Model):
    """Effective settings for one run. Every value is kept as text."""

    console_mode: Setting
    selenium_host: Setting
    selenium_port: Setting
    selenium_browsers: Setting
    yuitest_version: Setting
    selenium_wait_for_done: Setting
    engine: Setting
    tests_base: Setting
    results_outputdir: Setting
    results_filename: Setting
    results_format: Setting

    @property
    def silent(self) -> bool:
        """Whether console result output is suppressed."""
        return self.console_mode == "silent"

    def integer(self, key: str) -> int:
        """Parse a setting as an integer.

        Raises:
            ConfigurationValueError: If the value is not an integer

        """
        value = getattr(self, key)
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigurationValueError(
                f"Invalid value for {key}: '{value}' is not an integer"
            ) from exc

    def browsers(self) -> Sequence[str]:
        """Browsers to run tests in, from the comma-delimited setting."""
        return split_list(self.selenium_browsers)

    def result_formats(self) -> Sequence[str]:
        """Report formats to write, from the comma-delimited setting."""
        return split_list(self.results_format)


@dataclass(frozen=True, kw_only=True)
class ConfigOverrides:
    """Settings given explicitly on the command line."""

    silent: bool = False
    host: str | None = None
    port: str | None = None
    browsers: str | None = None
    yuitest: str | None = None

    def items(self) -> Iterator[tuple[str, str]]:
        """Yield (setting, value) pairs for each override that was given."""
        if self.silent:
            yield "console_mode", "silent"
        if self.host is not None:
            yield "selenium_host", self.host
        if self.port is not None:
            yield "selenium_port", self.port
        if self.browsers is not None:
            yield "selenium_browsers", self.browsers
        if self.yuitest is not None:
            yield "yuitest_version", self.yuitest


def split_list(value: str) -> Sequence[str]:
    """Split a comma-delimited setting, dropping blank entries."""
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _parse_mapping(text: str, source: str) -> Mapping[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationLoadError(f"Invalid YAML in {source}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationLoadError(
            f"Configuration in {source} must be a mapping of settings"
        )
    return data


def load_default_configuration() -> RunConfiguration:
    """Load the bundled default settings.

    Raises:
        ConfigurationLoadError: If the defaults are missing or incomplete

    """
    resource = files("yuitest_driver").joinpath(DEFAULTS_RESOURCE)
    try:
        text = resource.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationLoadError(
            f"Cannot load default configuration: {exc}"
        ) from exc

    data = _parse_mapping(text, DEFAULTS_RESOURCE)
    try:
        return RunConfiguration.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationLoadError(
            f"Invalid default configuration: {exc}"
        ) from exc


def load_configuration_file(path: Path) -> Mapping[str, str]:
    """Load settings from an external YAML file.

    Unknown keys are ignored with a warning. Values are returned as text.

    Raises:
        ConfigurationLoadError: If the file cannot be read or parsed

    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationLoadError(
            f"Cannot read configuration file {path}: {exc.strerror or exc}"
        ) from exc

    data = _parse_mapping(text, str(path))
    settings: dict[str, str] = {}
    for key, value in data.items():
        if key not in RunConfiguration.model_fields:
            log.warning("Ignoring unknown setting '%s' in %s", key, path)
            continue
        settings[key] = str(_as_text(value))
    return settings


def resolve_configuration(
    *,
    overrides: ConfigOverrides,
    conf_file: Path | None = None,
    defaults: RunConfiguration | None = None,
) -> RunConfiguration:
    """Merge defaults, an optional config file and command-line overrides.

    Later sources win: defaults, then ``conf_file``, then ``overrides``.
    """
    config = defaults if defaults is not None else load_default_configuration()

    if conf_file is not None:
        log.info("Loading configuration properties from %s", conf_file)
        config = config.model_copy(update=load_configuration_file(conf_file))

    updates: dict[str, str] = {}
    for key, value in overrides.items():
        log.info("Using command line value for %s: %s", key, value)
        updates[key] = value

    return config.model_copy(update=updates)
