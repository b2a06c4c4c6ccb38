"""budgetchain command-line entry point."""

import typer

from budgetchain.cli.chain import chain_command
from budgetchain.cli.period_cmd import period_command
from budgetchain.cli.summary import summary_command

app = typer.Typer(
    help="Monthly budget consumption and rollover calculator",
    no_args_is_help=True,
)

app.command(name="summary")(summary_command)
app.command(name="chain")(chain_command)
app.command(name="period")(period_command)


if __name__ == "__main__":
    app()
