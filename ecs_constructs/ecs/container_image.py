#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Images the containers are started from.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.task_definition import TaskDefinition

from troposphere import Sub

from ecs_constructs.iam.iam_role import policy_statement


class ContainerImage:
    """
    Base class for container images.

    :ivar image_name: the image URI rendered in the ContainerDefinition
    """

    def __init__(self, image_name):
        self.image_name = image_name

    def __repr__(self):
        return str(self.image_name)

    def bind(self, task_definition: TaskDefinition) -> None:
        """
        Called when the image is used by a container of the task definition.
        """
        pass

    @staticmethod
    def from_registry(name: str) -> RegistryImage:
        """
        Image from a public registry or Docker Hub, i.e. amazon/amazon-ecs-sample
        """
        return RegistryImage(name)

    @staticmethod
    def from_ecr_repository(repository_name: str, tag: str = "latest") -> EcrImage:
        """
        Image stored in an ECR repository of the account & region the stack is deployed to.
        """
        return EcrImage(repository_name, tag)


class RegistryImage(ContainerImage):
    def __init__(self, image_name: str):
        if not isinstance(image_name, str) or not image_name:
            raise ValueError("Image name must be a non-empty string. Got", image_name)
        super().__init__(image_name)


class EcrImage(ContainerImage):
    """
    Image from ECR. The task execution role is granted the permissions to pull it.
    """

    def __init__(self, repository_name: str, tag: str = "latest"):
        self.repository_name = repository_name
        self.tag = tag
        super().__init__(
            Sub(
                "${AWS::AccountId}.dkr.ecr.${AWS::Region}.${AWS::URLSuffix}/"
                f"{repository_name}:{tag}"
            )
        )

    def __repr__(self):
        return f"{self.repository_name}:{self.tag}"

    def bind(self, task_definition: TaskDefinition) -> None:
        execution_role = task_definition.obtain_execution_role()
        execution_role.add_to_policy(
            policy_statement(
                [
                    "ecr:BatchCheckLayerAvailability",
                    "ecr:GetDownloadUrlForLayer",
                    "ecr:BatchGetImage",
                ],
                Sub(
                    "arn:${AWS::Partition}:ecr:${AWS::Region}:${AWS::AccountId}:"
                    f"repository/{self.repository_name}"
                ),
            )
        )
        execution_role.add_to_policy(
            policy_statement("ecr:GetAuthorizationToken", "*")
        )
