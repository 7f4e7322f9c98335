"""covtel command line interface."""
