"""Version information for :mod:`rdfwizard`."""

VERSION = "0.3.0"
