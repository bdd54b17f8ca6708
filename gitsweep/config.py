"""IMAP connection settings from the environment, a .env file, or prompts."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import click
import questionary
from dotenv import load_dotenv, set_key

IMAP_KEYS = ("IMAP_HOST", "IMAP_PORT", "IMAP_SECURE", "IMAP_USERNAME", "IMAP_PASSWORD")
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """IMAP settings are missing or invalid."""


@dataclass(frozen=True)
class ImapConfig:
    host: str
    port: int
    secure: bool
    username: str
    password: str

    def as_env(self) -> dict[str, str]:
        return {
            "IMAP_HOST": self.host,
            "IMAP_PORT": str(self.port),
            "IMAP_SECURE": "true" if self.secure else "false",
            "IMAP_USERNAME": self.username,
            "IMAP_PASSWORD": self.password,
        }


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ConfigError(f"IMAP_SECURE must be true or false, got {value!r}")


def parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise ConfigError(f"IMAP_PORT must be a number, got {value!r}") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"IMAP_PORT out of range: {port}")
    return port


def _answer(question: questionary.Question, key: str) -> object:
    answer = question.ask()
    if answer is None:
        raise ConfigError(f"No value given for {key}")
    return answer


def _validate_port(value: str) -> bool | str:
    try:
        parse_port(value)
    except ConfigError as exc:
        return str(exc)
    return True


def load_imap_config(
    env_file: Path | None = None,
    interactive: bool = True,
    save: bool | None = None,
) -> ImapConfig:
    """Resolve IMAP settings, asking for whatever the environment lacks.

    Values already in the process environment win over ``env_file``. When
    something had to be prompted for, the settings may be written back to
    ``env_file``; ``save`` answers that question up front.
    """
    if env_file is not None and env_file.is_file():
        load_dotenv(env_file, override=False)

    present = {key: os.environ[key] for key in IMAP_KEYS if os.environ.get(key)}
    for key, value in present.items():
        shown = "********" if key == "IMAP_PASSWORD" else value
        click.echo(f"Using {key}={shown} from environment")

    missing = [key for key in IMAP_KEYS if key not in present]
    if missing and not interactive:
        raise ConfigError(f"Missing IMAP settings: {', '.join(missing)}")

    host = present.get("IMAP_HOST") or str(_answer(questionary.text("IMAP host:"), "IMAP_HOST"))
    if "IMAP_PORT" in present:
        port = parse_port(present["IMAP_PORT"])
    else:
        port = parse_port(
            str(_answer(questionary.text("IMAP port:", default="993", validate=_validate_port), "IMAP_PORT"))
        )
    if "IMAP_SECURE" in present:
        secure = parse_bool(present["IMAP_SECURE"])
    else:
        secure = bool(_answer(questionary.confirm("Use TLS for the IMAP connection?", default=True), "IMAP_SECURE"))
    username = present.get("IMAP_USERNAME") or str(
        _answer(questionary.text("IMAP username:"), "IMAP_USERNAME")
    )
    password = present.get("IMAP_PASSWORD") or str(
        _answer(questionary.password("IMAP password:"), "IMAP_PASSWORD")
    )
    config = ImapConfig(host=host, port=port, secure=secure, username=username, password=password)

    if missing and env_file is not None:
        if save is None:
            save = bool(questionary.confirm(f"Save these settings to {env_file}?", default=False).ask())
        if save:
            save_imap_config(config, env_file)
    return config


def save_imap_config(config: ImapConfig, env_file: Path) -> None:
    env_file.touch(exist_ok=True)
    for key, value in config.as_env().items():
        set_key(str(env_file), key, value)
    click.echo(f"Saved IMAP settings to {env_file}")
