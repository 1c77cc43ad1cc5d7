from typing import Any, Callable

import click

from punk_deployment.constants import EXIT_FAILURE, EXIT_SUCCESS


def execute(deployment: Callable[[], Any]) -> int:
    """
    Runs a deployment and maps its outcome to a process exit code.
    Any failure is reported on stderr; nothing is retried.
    """
    try:
        deployment()
    except Exception as error:
        click.secho(f"{type(error).__name__}: {error}", fg="red", err=True)
        return EXIT_FAILURE
    return EXIT_SUCCESS
