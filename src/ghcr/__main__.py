from ghcr.cli import app

app()
