from relpack.cli import cli

cli()
