"""``python -m beatschain`` runs the typer CLI."""

from beatschain import cli

if __name__ == "__main__":
    cli.main()
