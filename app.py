#!/usr/bin/env python3
"""CDK app for the AWS janitor Lambda."""

import os
import aws_cdk as cdk
from stacks.janitor_stack import JanitorStack

app = cdk.App()

JanitorStack(
    app,
    "AWSJanitorStack",
    description="Mark-and-sweep janitor for expired, unattached EBS volumes",
    env=cdk.Environment(
        account=os.getenv('CDK_DEFAULT_ACCOUNT'),
        region=os.getenv('CDK_DEFAULT_REGION', 'us-east-2')
    ),
    tags={
        "Project": "PlatformEngineering",
        "ManagedBy": "CDK",
    }
)

app.synth()
