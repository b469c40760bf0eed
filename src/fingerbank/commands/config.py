"""Config commands -- view and modify global configuration.

Provides the ``fingerbank config`` sub-command group for reading, updating,
and resetting the global configuration file
(:class:`~fingerbank.models.GlobalConfig`): API key source, base URL,
request settings, cache backend and TTL, output format.
"""

from __future__ import annotations

import typer

from fingerbank.output import error, format_response, info, print_data, success


config_app = typer.Typer(no_args_is_help=True)


_NULLABLE_KEYS = {"user_agent"}


def _coerce(key: str, current: object, value: str) -> object:
    """Convert *value* to the type of the field it replaces.

    An empty string resets a nullable field such as ``user_agent`` to ``None``.
    """
    if key in _NULLABLE_KEYS and value == "":
        return None
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes", "on")
    if isinstance(current, int):
        return int(value)
    return value


@config_app.command("show")
def config_show() -> None:
    """Show the stored configuration.

    Example::

        fingerbank config show --json
    """
    from fingerbank.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("path")
def config_path() -> None:
    """Print the path of the global config file."""
    from fingerbank.config import global_config_path

    print_data(str(global_config_path()))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'cache.ttl_seconds')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the existing field (bool, int, or
    str) and the result is validated before saving.

    Example::

        fingerbank config set cache.ttl_seconds 3600
        fingerbank config set cache.backend memory
        fingerbank config set api_key_source file:~/.fingerbank-key
    """
    from fingerbank.config import load_global_config, save_global_config
    from fingerbank.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    try:
        coerced = _coerce(key, target[final_key], value)
    except ValueError:
        error(f"Expected integer for {key}, got: {value}")
        raise typer.Exit(code=2) from None
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Reset configuration to defaults."""
    from fingerbank.config import save_global_config
    from fingerbank.models import GlobalConfig

    if not yes and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
