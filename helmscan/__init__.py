"""helmscan - scan every container image a Helm chart will pull."""

__version__ = "0.1.0"
