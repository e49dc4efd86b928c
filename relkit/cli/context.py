from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from relkit.core.config import Config, load_config_or_default
from relkit.core.errors import ErrorCode
from relkit.core.result import Err
from relkit.output.console import ConsoleProtocol, RichConsole

DEFAULT_CONFIG_NAME = "relkit.toml"


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    # Relative paths in the config file are resolved against this directory.
    config_dir: Path
    console: ConsoleProtocol

    def config_path(self, value: str) -> Path:
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return self.config_dir / path


def build_context(config_path: Path) -> CLIContext:
    console = RichConsole()
    result = load_config_or_default(config_path)
    if isinstance(result, Err):
        console.error(result.error.message)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(
        config=result.value,
        config_dir=config_path.expanduser().resolve().parent,
        console=console,
    )
