from .adapters.cli.app import run

run()
