from covtel.cli.main import cli

cli()
