"""Mark-and-sweep janitor for AWS resources left behind by test runs."""

__version__ = "0.1.0"
