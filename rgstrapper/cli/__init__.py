from rgstrapper.cli.main import cli

__all__ = ["cli"]
