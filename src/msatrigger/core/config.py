"""Trigger configuration.

This module provides:
- read_config_file / parse_config_lines: Flat key=value file reader
- TriggerConfig: Validated, immutable per-invocation settings

The config file uses the key names of MassSpecTrigger.cfg.
Older key names (SLD_Starts_With, Ignore_PostBlank, PostBlank_Matches,
Preserve_SLD, Min_Raw_Files_To_Move_Again) are accepted as aliases.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from msatrigger.core.types import ConfigInvalidError, ConfigMissingKeyError

logger = logging.getLogger(__name__)

OUTPUT_DIR_KEY = "Output_Directory"

DEFAULT_SOURCE_TRIM = "Transfer"
DEFAULT_REPEAT_RUN = "_RPT"
DEFAULT_TOKEN_FILE = "MSAComplete.txt"
DEFAULT_SEQUENCE_STARTS_WITH = "Exploris"
DEFAULT_SEQUENCE_EXTENSION = ".sld"
DEFAULT_DATA_EXTENSION = ".raw"
DEFAULT_CONTROL_MATCHES = "PostBlank"
DEFAULT_MIN_FILE_SIZE = 100000
DEFAULT_LOCK_TIMEOUT = 300.0


def parse_config_lines(lines: Iterable[str]) -> dict[str, str]:
    """Parse key=value lines into an ordered mapping.

    Blank lines and lines starting with '#' are skipped. A line must split
    into exactly two parts on '='; anything else is ignored. Surrounding
    single or double quotes are removed from values.

    Args:
        lines: Raw config file lines.

    Returns:
        Mapping of key to (string) value, in file order. Later duplicates win.
    """
    values: dict[str, str] = {}
    for line in lines:
        line = line.rstrip("\r\n")
        if not line.strip() or line.startswith("#"):
            continue
        parts = line.split("=")
        if len(parts) != 2:
            logger.debug("Skipping config line: %s", line)
            continue
        key = parts[0].strip()
        values[key] = parts[1].strip().strip("'\"")
    return values


def read_config_file(path: Path) -> dict[str, str]:
    """Read a flat key=value config file."""
    with open(path, encoding="utf-8") as f:
        return parse_config_lines(f)


class TriggerConfig(BaseModel):
    """Resolved settings for one trigger invocation.

    Field values are validated from the raw strings of the config file:
    integers and booleans are coerced, extensions are normalized to a
    lower-case suffix with a leading dot.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    output_directory: str = Field(validation_alias=OUTPUT_DIR_KEY)
    source_trim: str = Field(default=DEFAULT_SOURCE_TRIM, validation_alias="Source_Trim")
    repeat_run_matches: str = Field(
        default=DEFAULT_REPEAT_RUN, validation_alias="Repeat_Run_Matches"
    )
    token_file: str = Field(default=DEFAULT_TOKEN_FILE, validation_alias="Token_File")
    sequence_starts_with: str = Field(
        default=DEFAULT_SEQUENCE_STARTS_WITH,
        validation_alias=AliasChoices("Sequence_Starts_With", "SLD_Starts_With"),
    )
    sequence_extension: str = Field(
        default=DEFAULT_SEQUENCE_EXTENSION, validation_alias="Sequence_Extension"
    )
    data_file_extension: str = Field(
        default=DEFAULT_DATA_EXTENSION, validation_alias="Data_File_Extension"
    )
    ignore_control_files: bool = Field(
        default=True,
        validation_alias=AliasChoices("Ignore_Control_Files", "Ignore_PostBlank"),
    )
    control_file_matches: str = Field(
        default=DEFAULT_CONTROL_MATCHES,
        validation_alias=AliasChoices("Control_File_Matches", "PostBlank_Matches"),
    )
    remove_files: bool = Field(default=False, validation_alias="Remove_Files")
    remove_directories: bool = Field(default=False, validation_alias="Remove_Directories")
    preserve_manifest: bool = Field(
        default=True,
        validation_alias=AliasChoices("Preserve_Manifest", "Preserve_SLD"),
    )
    overwrite_older: bool = Field(default=False, validation_alias="Overwrite_Older")
    min_file_size_to_retransfer: int = Field(
        default=DEFAULT_MIN_FILE_SIZE,
        ge=0,
        validation_alias=AliasChoices(
            "Min_File_Size_To_Retransfer", "Min_Raw_Files_To_Move_Again"
        ),
    )
    lock_timeout: float = Field(default=DEFAULT_LOCK_TIMEOUT, ge=0, validation_alias="Lock_Timeout")
    lock_directory: str = Field(
        default_factory=tempfile.gettempdir, validation_alias="Lock_Directory"
    )
    debug: bool = Field(default=False, validation_alias="Debug")

    @field_validator("sequence_starts_with")
    @classmethod
    def _default_when_blank(cls, value: str) -> str:
        if not value:
            logger.warning(
                'Config key "Sequence_Starts_With" not set, using default value: "%s"',
                DEFAULT_SEQUENCE_STARTS_WITH,
            )
            return DEFAULT_SEQUENCE_STARTS_WITH
        return value

    @field_validator("sequence_extension", "data_file_extension")
    @classmethod
    def _normalize_extension(cls, value: str) -> str:
        value = value.strip().lower()
        if value and not value.startswith("."):
            value = "." + value
        return value

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, str], source: str | None = None
    ) -> TriggerConfig:
        """Build a config from raw key=value strings.

        Args:
            values: Parsed config file contents.
            source: Where the values came from (for error messages).

        Returns:
            Validated TriggerConfig.

        Raises:
            ConfigMissingKeyError: If Output_Directory is absent or empty.
            ConfigInvalidError: If a value has the wrong type.
        """
        if not values.get(OUTPUT_DIR_KEY):
            raise ConfigMissingKeyError(OUTPUT_DIR_KEY, source)
        try:
            return cls.model_validate(dict(values))
        except ValidationError as e:
            where = f" ({source})" if source else ""
            raise ConfigInvalidError(f"Invalid configuration{where}: {e}") from e

    @property
    def output_root(self) -> Path:
        """Output directory as a path."""
        return Path(self.output_directory)
