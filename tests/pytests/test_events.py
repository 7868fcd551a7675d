#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import fixture, raises

from ecs_constructs.common.construct import App, Stack
from ecs_constructs.ecs.container_image import ContainerImage
from ecs_constructs.ecs.ecs_cluster import Cluster
from ecs_constructs.ecs.task_definition import (
    Ec2TaskDefinition,
    FargateTaskDefinition,
)
from ecs_constructs.events import EventRule
from ecs_constructs.events.events_ecs import Ec2EventRuleTarget
from ecs_constructs.events.scheduled_task import ScheduledEc2Task
from ecs_constructs.exceptions import IncompatibleOptions, ValidationError

SAMPLE_IMAGE = ContainerImage.from_registry("amazon/amazon-ecs-sample")
SUBNETS = ["subnet-abcd1234", "subnet-efgh5678"]


def define_job_task_definition(stack, count):
    task_definition = Ec2TaskDefinition(stack, f"TaskDef{count}")
    task_definition.add_container("job", SAMPLE_IMAGE, memory_limit_mib=128)
    return task_definition


@fixture()
def stack():
    return Stack(App(), "TestStack")


@fixture()
def cluster(stack):
    cluster = Cluster(stack, "EcsCluster", vpc_id="vpc-1234abcd", subnets=SUBNETS)
    cluster.add_capacity("DefaultAutoScalingGroup", instance_type="t2.micro")
    return cluster


def test_scheduled_ec2_task(stack, cluster):
    scheduled = ScheduledEc2Task(
        stack,
        "ScheduledTask",
        cluster,
        SAMPLE_IMAGE,
        "rate(1 minute)",
        command="echo,hello",
        memory_limit_mib=512,
        environment={"TRIGGER": "CloudWatch Events"},
    )
    assert scheduled.task_definition.is_ec2_compatible
    assert scheduled.container.name == "ScheduledContainer"
    resources = stack.synthesize().to_dict()["Resources"]

    task_definition = resources["ScheduledTaskScheduledTaskDef"]["Properties"]
    assert task_definition["NetworkMode"] == "bridge"
    container = task_definition["ContainerDefinitions"][0]
    assert container["Command"] == ["echo", "hello"]
    assert container["Memory"] == 512
    assert container["Environment"] == [
        {"Name": "TRIGGER", "Value": "CloudWatch Events"}
    ]
    assert container["LogConfiguration"]["LogDriver"] == "awslogs"
    assert (
        container["LogConfiguration"]["Options"]["awslogs-stream-prefix"]
        == "ScheduledTask"
    )
    assert "ScheduledTaskScheduledTaskLogging" in resources

    rule = resources["ScheduledTaskScheduledEventRule"]
    assert rule["Type"] == "AWS::Events::Rule"
    assert rule["Properties"]["ScheduleExpression"] == "rate(1 minute)"
    assert rule["Properties"]["State"] == "ENABLED"
    targets = rule["Properties"]["Targets"]
    assert len(targets) == 1
    target = targets[0]
    assert target["Id"] == "ScheduledTaskScheduledEventRuleTarget"
    assert target["Arn"] == {"Fn::GetAtt": ["EcsCluster", "Arn"]}
    assert target["RoleArn"] == {
        "Fn::GetAtt": ["ScheduledTaskScheduledEventRuleTargetEventsRole", "Arn"]
    }
    assert target["EcsParameters"] == {
        "LaunchType": "EC2",
        "TaskCount": 1,
        "TaskDefinitionArn": {"Ref": "ScheduledTaskScheduledTaskDef"},
    }

    events_role = resources["ScheduledTaskScheduledEventRuleTargetEventsRole"]
    statements = events_role["Properties"]["Policies"][0]["PolicyDocument"][
        "Statement"
    ]
    assert statements[0]["Action"] == ["ecs:RunTask"]
    assert statements[0]["Resource"] == [{"Ref": "ScheduledTaskScheduledTaskDef"}]
    assert statements[1]["Action"] == ["iam:PassRole"]


def test_invalid_schedule(stack, cluster):
    with raises(ValueError):
        ScheduledEc2Task(stack, "Scheduled", cluster, SAMPLE_IMAGE, "every minute")
    with raises(ValueError):
        EventRule(stack, "Rule", schedule_expression="at(2022-01-01T00:00:00)")


def test_rule_targets_limit(stack, cluster):
    rule = EventRule(stack, "Rule", schedule_expression="cron(0 12 * * ? *)")
    for count in range(6):
        task_definition = define_job_task_definition(stack, count)
        rule.add_target(
            Ec2EventRuleTarget(stack, f"Target{count}", cluster, task_definition)
        )
    with raises(ValidationError) as error:
        stack.synthesize()
    assert any("up to 5 targets" in message for message in error.value.errors)


def test_fargate_task_definition_target(stack, cluster):
    task_definition = FargateTaskDefinition(stack, "TaskDef")
    with raises(IncompatibleOptions):
        Ec2EventRuleTarget(stack, "Target", cluster, task_definition)

