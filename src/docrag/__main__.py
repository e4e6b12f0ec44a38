"""Allow `python -m docrag`."""

from docrag.cli import app

app(prog_name="docrag")
