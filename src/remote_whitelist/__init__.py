"""
Remote Whitelist CLI - keep a remote whitelist in sync across a shared session.

Usage:
    remote-whitelist check https://example.github.io/whitelist.txt --identity alice
    remote-whitelist parse whitelist.txt
    remote-whitelist simulate -p alice -p bob --duration 5
    remote-whitelist config show
"""

import typer

from remote_whitelist.cli.commands import check, config_app, parse, simulate
from remote_whitelist.cli.helpers import configure_logging

__version__ = "0.1.0"

app = typer.Typer(
    name="remote-whitelist",
    help="Fetch a remote whitelist and replicate it to every session participant",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show protocol logging"),
) -> None:
    """Remote whitelist tooling."""
    configure_logging(verbose)


app.command()(check)
app.command()(parse)
app.command()(simulate)
app.add_typer(config_app, name="config")


def main():
    app()


if __name__ == "__main__":
    main()
