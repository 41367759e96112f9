"""CDK Stack for the AWS janitor Lambda."""

from aws_cdk import (
    Stack,
    Duration,
    RemovalPolicy,
    aws_lambda as lambda_,
    aws_iam as iam,
    aws_s3 as s3,
    aws_sns as sns,
    aws_events as events,
    aws_events_targets as targets,
    aws_logs as logs,
    aws_cloudwatch as cloudwatch,
    aws_cloudwatch_actions as cw_actions,
    CfnParameter,
    CfnOutput,
)
from constructs import Construct


class JanitorStack(Stack):
    """
    CDK Stack for the mark-and-sweep janitor.

    Deletes EBS volumes that have been tracked for longer than the TTL and
    are not attached, with:
    - Tracking set persisted in a versioned S3 bucket between runs
    - Scheduled execution via EventBridge
    - Configurable dry-run mode
    """

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Parameters
        dry_run_param = CfnParameter(
            self, "DryRunMode",
            type="String",
            default="true",
            allowed_values=["true", "false"],
            description="[SAFETY] Log expired volumes without deleting them. Set to 'false' only after reviewing dry-run output."
        )

        ttl_hours_param = CfnParameter(
            self, "TTLHours",
            type="Number",
            default=24,
            min_value=1,
            max_value=720,
            description="[POLICY] Hours a volume must be tracked (or exist) before it may be deleted."
        )

        include_tags_param = CfnParameter(
            self, "IncludeTags",
            type="String",
            default="",
            description="[POLICY] Only manage resources with all of these tags (key or key=value, comma-separated). Empty manages everything."
        )

        exclude_tags_param = CfnParameter(
            self, "ExcludeTags",
            type="String",
            default="",
            description="[POLICY] Never manage resources with any of these tags (key or key=value, comma-separated)."
        )

        schedule_rate_param = CfnParameter(
            self, "ScheduleRateMinutes",
            type="Number",
            default=60,
            description="[SCHEDULING] Execution frequency in minutes."
        )

        regions_param = CfnParameter(
            self, "TargetRegions",
            type="String",
            default="all",
            description="[REGION FILTER] 'all' or comma-separated list of regions (e.g., 'us-east-1,us-west-2')."
        )

        log_level_param = CfnParameter(
            self, "LogLevel",
            type="String",
            default="INFO",
            allowed_values=["DEBUG", "INFO", "WARNING", "ERROR"],
            description="[LOGGING] Log verbosity. DEBUG includes per-resource TTL and deferral decisions."
        )

        # Tracking set storage
        state_bucket = s3.Bucket(
            self, "JanitorStateBucket",
            versioned=True,
            encryption=s3.BucketEncryption.S3_MANAGED,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            enforce_ssl=True,
            removal_policy=RemovalPolicy.RETAIN,
        )
        state_key = "aws-janitor/tracking-set.json"

        # SNS topic for alarms; subscriptions are added manually
        alarm_topic = sns.Topic(
            self, "JanitorAlarmTopic",
            topic_name="AWSJanitorAlarms",
            display_name="AWS Janitor Alarms"
        )

        lambda_role = iam.Role(
            self, "JanitorRole",
            role_name="RoleAWSJanitor",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "service-role/AWSLambdaBasicExecutionRole"
                )
            ]
        )

        lambda_role.add_to_policy(iam.PolicyStatement(
            effect=iam.Effect.ALLOW,
            actions=[
                "ec2:DescribeRegions",
                "ec2:DescribeVolumes",
                "ec2:DeleteVolume",
                "sts:GetCallerIdentity"
            ],
            resources=["*"]
        ))

        state_bucket.grant_read_write(lambda_role, state_key)

        # One invocation at a time owns the tracking set
        janitor_lambda = lambda_.Function(
            self, "JanitorLambda",
            function_name="LambdaAWSJanitor",
            description="Mark-and-sweep cleanup of expired, unattached EBS volumes",
            runtime=lambda_.Runtime.PYTHON_3_13,
            architecture=lambda_.Architecture.ARM_64,
            handler="aws_janitor.handler.lambda_handler",
            code=lambda_.Code.from_asset("lambda"),
            role=lambda_role,
            timeout=Duration.seconds(900),
            memory_size=512,
            reserved_concurrent_executions=1,
            log_retention=logs.RetentionDays.ONE_MONTH,
            environment={
                "DRY_RUN": dry_run_param.value_as_string,
                "TTL_HOURS": ttl_hours_param.value_as_string,
                "INCLUDE_TAGS": include_tags_param.value_as_string,
                "EXCLUDE_TAGS": exclude_tags_param.value_as_string,
                "STATE_BUCKET": state_bucket.bucket_name,
                "STATE_KEY": state_key,
                "TARGET_REGIONS": regions_param.value_as_string,
                "LOG_LEVEL": log_level_param.value_as_string
            }
        )

        schedule_rule = events.Rule(
            self, "JanitorScheduleRule",
            rule_name="AWSJanitorSchedule",
            description="Runs the AWS janitor mark-and-sweep on a fixed rate",
            schedule=events.Schedule.rate(Duration.minutes(schedule_rate_param.value_as_number)),
            enabled=True
        )

        # No retries: the next scheduled run picks up where this one failed
        schedule_rule.add_target(targets.LambdaFunction(
            janitor_lambda,
            retry_attempts=0,
            max_event_age=Duration.hours(1)
        ))

        # Enumeration failures make the invocation fail
        lambda_errors_alarm = cloudwatch.Alarm(
            self, "LambdaErrorsAlarm",
            alarm_name="AWSJanitor-LambdaErrors",
            alarm_description="Alert when the janitor fails to list resources or save its tracking set",
            metric=janitor_lambda.metric_errors(
                period=Duration.hours(1),
                statistic="Sum"
            ),
            threshold=1,
            evaluation_periods=1,
            treat_missing_data=cloudwatch.TreatMissingData.NOT_BREACHING
        )
        lambda_errors_alarm.add_alarm_action(cw_actions.SnsAction(alarm_topic))

        CfnOutput(
            self, "LambdaFunctionName",
            description="Name of the Lambda function",
            value=janitor_lambda.function_name,
            export_name="AWSJanitorLambdaName"
        )

        CfnOutput(
            self, "StateBucketName",
            description="S3 bucket holding the tracking set",
            value=state_bucket.bucket_name
        )

        CfnOutput(
            self, "AlarmTopicArn",
            description="ARN of the SNS topic for alarms",
            value=alarm_topic.topic_arn
        )

        CfnOutput(
            self, "DryRunModeOutput",
            description="Current dry-run mode setting",
            value=dry_run_param.value_as_string
        )
