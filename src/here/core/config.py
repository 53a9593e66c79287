"""TOML config files for the server and the client agent.

Each program reads a small TOML file (``server.conf.toml`` with the bind
address, ``client.conf.toml`` with the account, password and API URL). When
the file does not exist the user is asked for the values on the terminal and
the file is written, so the next start is non-interactive.

Example:
    from here.core.config import ServerConfig, load_server_config
    config = load_server_config("./server.conf.toml")
    print(config.host, config.port)
"""

from __future__ import annotations

import json
import logging
import tomllib
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from here.core.errors import ConfigError

# Configure logger for this module
logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)
Ask = Callable[[str], str]

MAX_PORT = 65535


def split_bind(bind: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6]:port``) into its parts."""
    host, sep, port_text = bind.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"Bind address must look like host:port, got {bind!r}")
    port = int(port_text)
    if not 0 <= port <= MAX_PORT:
        raise ValueError(f"Port out of range: {port}")
    return host.strip("[]"), port


class ServerConfig(BaseModel):
    """Server config file contents."""

    bind: str = Field(..., description="Listen address, e.g. 127.0.0.1:8080")

    @field_validator("bind")
    @classmethod
    def _check_bind(cls, value: str) -> str:
        split_bind(value)
        return value.strip()

    @property
    def host(self) -> str:
        return split_bind(self.bind)[0]

    @property
    def port(self) -> int:
        return split_bind(self.bind)[1]


class ClientConfig(BaseModel):
    """Client config file contents."""

    account: str = Field(..., min_length=1)
    passwd: str | None = Field(None, description="Plaintext password, digested before sending")
    api_url: str = Field(..., min_length=1, description="Base URL, e.g. http://localhost/here")

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")


@dataclass(frozen=True)
class Prompt:
    """One question asked when a config file has to be created."""

    field: str
    question: str
    optional: bool = False


SERVER_PROMPTS = (Prompt("bind", "Please input the bind (example: 127.0.0.1:8080): "),)

CLIENT_PROMPTS = (
    Prompt("account", "Please input the account: "),
    Prompt(
        "passwd",
        "Please input the password (leave it empty for no password): ",
        optional=True,
    ),
    Prompt("api_url", "Please input the API URL (example: http://localhost/here): "),
)


def dump_toml(values: Mapping[str, str]) -> str:
    """Render flat string values as TOML basic strings."""
    return "".join(f"{key} = {_toml_string(value)}\n" for key, value in values.items())


def _toml_string(value: str) -> str:
    # Non-ASCII stays literal: TOML rejects the surrogate pairs json would emit.
    # TOML also forbids a raw DEL, which json leaves unescaped.
    return json.dumps(value, ensure_ascii=False).replace("\x7f", "\\u007f")


def load_config(
    path: str | Path,
    model: type[ConfigT],
    prompts: Sequence[Prompt],
    ask: Ask = input,
) -> ConfigT:
    """Read the config at ``path``, creating it interactively if absent.

    Raises:
        ConfigError: If the file cannot be read, parsed, validated or written.
    """
    path = Path(path)
    if not path.exists():
        logger.info("Config file %s not found, creating it", path)
        return create_config(path, model, prompts, ask)

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Cannot load config {path}: {exc}") from exc

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {path}: {exc}") from exc


def create_config(
    path: Path,
    model: type[ConfigT],
    prompts: Sequence[Prompt],
    ask: Ask = input,
) -> ConfigT:
    """Ask for every value in ``prompts`` and write the result to ``path``."""
    answers: dict[str, str] = {}
    try:
        for prompt in prompts:
            answer = ask(prompt.question).strip()
            # A blank optional answer means the value is not set at all.
            if answer or not prompt.optional:
                answers[prompt.field] = answer
    except EOFError as exc:
        raise ConfigError(f"No terminal input to create config {path}") from exc

    try:
        config = model.model_validate(answers)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config values: {exc}") from exc

    try:
        path.write_text(dump_toml(config.model_dump(exclude_none=True)), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot write config {path}: {exc}") from exc
    return config


def load_server_config(path: str | Path, ask: Ask = input) -> ServerConfig:
    return load_config(path, ServerConfig, SERVER_PROMPTS, ask)


def load_client_config(path: str | Path, ask: Ask = input) -> ClientConfig:
    return load_config(path, ClientConfig, CLIENT_PROMPTS, ask)
