#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>


import re

from troposphere import Join, Ref, Sub

from ecs_constructs.common.logging import LOG


def service_role_trust_policy(*service_names: str) -> dict:
    """
    Simple function to format the trust relationship for a Role and AWS Services
    used from lambda-my-aws/ozone

    :param str service_names: name of the AWS services, i.e. ecs-tasks
    :return: policy document
    :rtype: dict
    """
    if not service_names:
        raise ValueError("At least one service must be trusted by the role")
    statement = {
        "Effect": "Allow",
        "Principal": {
            "Service": [
                Sub(f"{service_name}.${{AWS::URLSuffix}}")
                for service_name in service_names
            ]
        },
        "Action": ["sts:AssumeRole"],
    }
    policy_doc = {"Version": "2012-10-17", "Statement": [statement]}
    return policy_doc


def define_iam_policy(policy: str) -> str:
    """
    From input, determines if the policy string is the full ARN or just the name of the policy.
    If just the name, assumes it is from the account itself, and adds the necessary ARN prefix.

    :param str policy:
    :return: the policy
    :rtype: str
    """
    if isinstance(policy, (Sub, Ref, Join)):
        LOG.debug(f"policy {policy}")
        return policy
    policy_def = policy
    policy_re = re.compile(
        r"((^([a-zA-Z0-9-_./]+)$)|(^(arn:aws:iam::(aws|\d{12}):policy/)[a-zA-Z0-9-_./]+$))"
    )

    if not policy_re.match(policy):
        raise ValueError(
            f"policy name {policy} does not match expected regexp",
            policy_re.pattern,
        )
    if not policy.startswith("arn:aws:iam::"):
        policy_def = Sub(
            f"arn:${{AWS::Partition}}:iam::${{AWS::AccountId}}:policy/{policy}"
        )
    return policy_def


def aws_managed_policy(policy_name: str) -> Sub:
    """
    Returns the ARN of an AWS Managed policy, i.e. AWSXRayDaemonWriteAccess
    """
    return Sub(f"arn:${{AWS::Partition}}:iam::aws:policy/{policy_name}")
