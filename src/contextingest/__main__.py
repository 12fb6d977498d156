"""Run the contextingest CLI:

    python -m contextingest ingest docs/
"""

from contextingest.cli.app import cli

if __name__ == "__main__":
    cli()
