"""Typer sub-commands for the ``hatx`` command line.

Each module registers commands that open a
:class:`~hatx.client.HatxService` for the duration of one invocation and
print the result through :mod:`hatx.output`.
"""
