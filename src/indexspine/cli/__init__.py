"""indexspine command-line interface (typer + rich)."""
