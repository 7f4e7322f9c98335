"""covtel - attribute Istanbul coverage to CODEOWNERS teams and export it as OTel metrics."""

__version__ = "0.1.0"
