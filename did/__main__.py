from did.cli import run

run()
