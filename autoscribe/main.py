"""Entry point for autoscribe.

Delegates to the Click command group, which resolves configuration and
sets up logging before dispatching to a subcommand.
"""

from autoscribe.cli.commands import cli


def main() -> None:
    """Run the autoscribe command-line interface."""
    cli(prog_name="autoscribe")


if __name__ == "__main__":
    main()
