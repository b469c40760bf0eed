"""Built-in CLI sub-commands for fingerbank.

* :mod:`~fingerbank.commands.query` -- the API commands (``interrogate``,
  ``device``, ``base-info``, ``account``, ``download``).
* :mod:`~fingerbank.commands.cache` -- inspect and empty the response cache.
* :mod:`~fingerbank.commands.config` -- view and modify global settings.

Multi-command groups export a :class:`typer.Typer` sub-application; the API
commands are plain callbacks registered directly on the root app.
"""
