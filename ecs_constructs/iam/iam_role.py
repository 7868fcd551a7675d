#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
IAM Role construct, used for the ECS Task / Execution roles, the EC2 hosts and the Events rules targets.
"""

from __future__ import annotations

from troposphere import GetAtt, NoValue, Ref, Template
from troposphere.iam import Policy
from troposphere.iam import Role as CfnRole

from ecs_constructs.common.construct import Construct
from ecs_constructs.common.logging import LOG
from ecs_constructs.common.troposphere_tools import add_resource
from ecs_constructs.iam import define_iam_policy, service_role_trust_policy


def policy_statement(actions, resources, effect: str = "Allow", **kwargs) -> dict:
    """
    Returns an IAM policy statement

    :param list|str actions:
    :param list|str resources:
    :param str effect:
    :param kwargs: extra keys of the statement, i.e. Condition
    """
    statement = {
        "Effect": effect,
        "Action": actions if isinstance(actions, list) else [actions],
        "Resource": resources if isinstance(resources, list) else [resources],
    }
    statement.update(kwargs)
    return statement


class Role(Construct):
    """
    IAM Role assumed by AWS services

    :ivar list[str] assumed_by: the AWS services allowed to assume the role, i.e. ecs-tasks
    :ivar list[dict] statements: the statements of the role inline policy
    :ivar list managed_policies: the managed policies ARN
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        assumed_by,
        managed_policies: list = None,
        role_name: str = None,
        path: str = None,
        permissions_boundary: str = None,
    ):
        super().__init__(scope, id)
        self.assumed_by = assumed_by if isinstance(assumed_by, list) else [assumed_by]
        self.statements = []
        self.managed_policies = []
        self.role_name = role_name
        self.role_path = path
        self.permissions_boundary = permissions_boundary
        if managed_policies:
            for policy in managed_policies:
                self.add_managed_policy(policy)
        self.cfn_resource = None

    @property
    def arn(self) -> GetAtt:
        return GetAtt(self.logical_id, "Arn")

    @property
    def name(self) -> Ref:
        return Ref(self.logical_id)

    def add_to_policy(self, statement: dict) -> None:
        if statement not in self.statements:
            self.statements.append(statement)

    def add_managed_policy(self, policy) -> None:
        policy_arn = define_iam_policy(policy)
        if policy_arn not in self.managed_policies:
            self.managed_policies.append(policy_arn)

    def render(self, template: Template) -> None:
        self.cfn_resource = CfnRole(
            self.logical_id,
            AssumeRolePolicyDocument=service_role_trust_policy(*self.assumed_by),
            ManagedPolicyArns=self.managed_policies if self.managed_policies else NoValue,
            Policies=[
                Policy(
                    PolicyName=f"{self.logical_id}Policy",
                    PolicyDocument={
                        "Version": "2012-10-17",
                        "Statement": self.statements,
                    },
                )
            ]
            if self.statements
            else NoValue,
            RoleName=self.role_name if self.role_name else NoValue,
            Path=self.role_path if self.role_path else NoValue,
            PermissionsBoundary=define_iam_policy(self.permissions_boundary)
            if self.permissions_boundary
            else NoValue,
        )
        add_resource(template, self.cfn_resource)

    @classmethod
    def from_role_arn(cls, scope: Construct, id: str, role_arn: str) -> ImportedRole:
        return ImportedRole(scope, id, role_arn)


class ImportedRole(Construct):
    """
    Existing IAM Role, referred to by ARN. Nothing is rendered and policies cannot be changed.
    """

    def __init__(self, scope: Construct, id: str, role_arn: str):
        super().__init__(scope, id)
        self.role_arn = role_arn

    @property
    def arn(self):
        return self.role_arn

    def add_to_policy(self, statement: dict) -> None:
        LOG.warning(
            f"{self.path} - Role {self.role_arn} is imported. Cannot add statement {statement}"
        )

    def add_managed_policy(self, policy) -> None:
        LOG.warning(
            f"{self.path} - Role {self.role_arn} is imported. Cannot attach policy {policy}"
        )
