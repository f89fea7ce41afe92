"""mktocli: rate-limited async access to the Marketo REST API, with a Typer CLI."""

__version__ = "0.1.0"
