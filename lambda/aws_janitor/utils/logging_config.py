"""Logging configuration using AWS Lambda Powertools."""

import os

from aws_lambda_powertools import Logger

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Structured JSON logging; Lambda context is injected when running in Lambda
logger = Logger(
    service="aws-janitor",
    level=LOG_LEVEL,
)


def get_logger():
    """Get the shared janitor logger.

    The same Powertools Logger is used by the Lambda handler and the CLI, so
    sweep decisions are logged identically in both.
    """
    return logger
