#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
ECS Cluster and the EC2 capacity (Launch Template, Security Group, IAM Role and AutoScaling Group)
the tasks run onto.

The hosts use CFN-INIT to register into the cluster at boot time.
"""

from __future__ import annotations

from troposphere import (
    Base64,
    GetAtt,
    Join,
    NoValue,
    Ref,
    Sub,
    Template,
    cloudformation,
)
from troposphere.autoscaling import AutoScalingGroup, LaunchTemplateSpecification
from troposphere.ec2 import (
    EBSBlockDevice,
    IamInstanceProfile,
    LaunchTemplate,
    LaunchTemplateBlockDeviceMapping,
    LaunchTemplateData,
    Monitoring,
    SecurityGroup,
)
from troposphere.ecs import Cluster as CfnCluster
from troposphere.ecs import ClusterSetting
from troposphere.iam import InstanceProfile

from ecs_constructs.common.construct import Construct
from ecs_constructs.common.logging import LOG
from ecs_constructs.common.troposphere_tools import add_parameters, add_resource
from ecs_constructs.ecs.ecs_params import ECS_AMI_ID, ECS_HOSTS_MANAGED_POLICY
from ecs_constructs.iam.iam_role import Role, policy_statement


class Cluster(Construct):
    """
    ECS Cluster the services and tasks are deployed to.

    :ivar str cluster_name: name of the cluster, generated by CFN if not set
    :ivar str vpc_id: VPC the cluster instances and awsvpc tasks are in
    :ivar list subnets: default subnets of the services
    :ivar list[AutoScalingCapacity] capacities:
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        cluster_name: str = None,
        vpc_id=None,
        subnets: list = None,
        container_insights: bool = False,
    ):
        super().__init__(scope, id)
        self.cluster_name = cluster_name
        self.vpc_id = vpc_id
        self.subnets = subnets if subnets else []
        self.container_insights = container_insights
        self.capacities = []
        self.cfn_resource = None

    @property
    def cluster_ref(self):
        """
        Identifier of the cluster for the services, task targets and hosts
        """
        return Ref(self.logical_id)

    @property
    def arn(self):
        return GetAtt(self.logical_id, "Arn")

    @property
    def has_ec2_capacity(self) -> bool:
        return bool(self.capacities)

    @staticmethod
    def from_cluster_attributes(
        scope: Construct,
        id: str,
        cluster_name: str,
        vpc_id=None,
        subnets: list = None,
    ) -> ImportedCluster:
        return ImportedCluster(scope, id, cluster_name, vpc_id, subnets)

    def add_capacity(
        self,
        id: str,
        instance_type: str,
        min_capacity: int = 1,
        max_capacity: int = None,
        desired_capacity: int = None,
        subnets: list = None,
    ) -> AutoScalingCapacity:
        """
        Adds EC2 instances to the cluster through an AutoScaling Group.

        :param str id:
        :param str instance_type: EC2 instance type, i.e. m5a.large
        :param int min_capacity:
        :param int max_capacity: defaults to min_capacity
        :param int desired_capacity:
        :param list subnets: defaults to the cluster subnets
        :rtype: AutoScalingCapacity
        """
        capacity = AutoScalingCapacity(
            self,
            id,
            instance_type,
            min_capacity,
            max_capacity,
            desired_capacity,
            subnets if subnets else self.subnets,
        )
        self.capacities.append(capacity)
        return capacity

    def render(self, template: Template) -> None:
        self.cfn_resource = CfnCluster(
            self.logical_id,
            ClusterName=self.cluster_name if self.cluster_name else NoValue,
            ClusterSettings=[
                ClusterSetting(Name="containerInsights", Value="enabled")
            ]
            if self.container_insights
            else NoValue,
        )
        add_resource(template, self.cfn_resource)


class ImportedCluster(Cluster):
    """
    Existing ECS Cluster, referred to by name. Nothing is rendered.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        cluster_name: str,
        vpc_id=None,
        subnets: list = None,
    ):
        if not cluster_name:
            raise ValueError("cluster_name is required to import a cluster")
        super().__init__(scope, id, cluster_name, vpc_id, subnets)

    @property
    def cluster_ref(self):
        return self.cluster_name

    @property
    def arn(self):
        return Sub(
            "arn:${AWS::Partition}:ecs:${AWS::Region}:${AWS::AccountId}:"
            f"cluster/{self.cluster_name}"
        )

    def add_capacity(self, id: str, instance_type: str, **kwargs):
        raise ValueError(
            f"{self.path} - Cannot add capacity to imported cluster {self.cluster_name}"
        )

    def render(self, template: Template) -> None:
        LOG.debug(f"{self.path} - Cluster {self.cluster_name} is imported")


def define_ecs_config(cluster: Cluster) -> Join:
    return Join(
        "\n",
        [
            Sub("ECS_CLUSTER=${ClusterName}", ClusterName=cluster.cluster_ref),
            "ECS_ENABLE_TASK_IAM_ROLE=true",
            "ECS_ENABLE_SPOT_INSTANCE_DRAINING=true",
            "ECS_ENABLE_TASK_IAM_ROLE_NETWORK_HOST=true",
            "ECS_ENABLE_CONTAINER_METADATA=true",
            "ECS_ENABLE_UNTRACKED_IMAGE_CLEANUP=true",
            "ECS_ENABLE_TASK_ENI=true",
            "ECS_AWSVPC_BLOCK_IMDS=true",
            'ECS_AVAILABLE_LOGGING_DRIVERS=["awslogs", "json-file"]',
            "#EOF",
        ],
    )


class AutoScalingCapacity(Construct):
    """
    EC2 hosts of the cluster, created from a Launch Template using the ECS optimized AMI.

    :ivar Cluster cluster:
    :ivar Role role: the IAM role of the instances
    """

    def __init__(
        self,
        cluster: Cluster,
        id: str,
        instance_type: str,
        min_capacity: int = 1,
        max_capacity: int = None,
        desired_capacity: int = None,
        subnets: list = None,
    ):
        if max_capacity is None:
            max_capacity = min_capacity
        if min_capacity < 0 or max_capacity < min_capacity:
            raise ValueError(
                f"Invalid capacity. min_capacity ({min_capacity}) must be positive "
                f"and lower or equal to max_capacity ({max_capacity})"
            )
        if desired_capacity is not None and not (
            min_capacity <= desired_capacity <= max_capacity
        ):
            raise ValueError(
                f"desired_capacity ({desired_capacity}) must be between {min_capacity} and {max_capacity}"
            )
        if not subnets:
            raise ValueError(f"{id} - Subnets are required to add capacity to the cluster")
        super().__init__(cluster, id)
        self.cluster = cluster
        self.instance_type = instance_type
        self.min_capacity = min_capacity
        self.max_capacity = max_capacity
        self.desired_capacity = desired_capacity
        self.subnets = subnets
        self.role = Role(
            self,
            "InstanceRole",
            "ec2",
            managed_policies=[ECS_HOSTS_MANAGED_POLICY],
        )
        self.role.add_to_policy(
            policy_statement(
                [
                    "ecs:RegisterContainerInstance",
                    "ecs:UpdateContainerInstancesState",
                    "ecs:DeregisterContainerInstance",
                ],
                cluster.arn,
            )
        )
        self.launch_template = None
        self.security_group = None
        self.auto_scaling_group = None

    def validate(self) -> list:
        if self.cluster.vpc_id is None:
            return ["The cluster vpc_id must be set to create the hosts security group"]
        return []

    def render_launch_template(self) -> LaunchTemplate:
        launch_template_title = f"{self.logical_id}LaunchTemplate"
        return LaunchTemplate(
            launch_template_title,
            Metadata=cloudformation.Metadata(
                cloudformation.Init(
                    cloudformation.InitConfigSets(default=["ecsconfig"]),
                    ecsconfig=cloudformation.InitConfig(
                        files={
                            "/etc/ecs/ecs.config": {
                                "owner": "root",
                                "group": "root",
                                "mode": "644",
                                "content": define_ecs_config(self.cluster),
                            }
                        },
                        commands={
                            "0001-restartecs": {
                                "command": "systemctl --no-block restart ecs"
                            }
                        },
                    ),
                )
            ),
            LaunchTemplateData=LaunchTemplateData(
                BlockDeviceMappings=[
                    LaunchTemplateBlockDeviceMapping(
                        DeviceName="/dev/xvda",
                        Ebs=EBSBlockDevice(DeleteOnTermination=True, Encrypted=True),
                    )
                ],
                ImageId=Ref(ECS_AMI_ID),
                InstanceInitiatedShutdownBehavior="terminate",
                IamInstanceProfile=IamInstanceProfile(
                    Arn=GetAtt(f"{self.logical_id}InstanceProfile", "Arn")
                ),
                InstanceType=self.instance_type,
                Monitoring=Monitoring(Enabled=True),
                SecurityGroupIds=[GetAtt(self.security_group, "GroupId")],
                UserData=Base64(
                    Join(
                        "\n",
                        [
                            "#!/usr/bin/env bash",
                            "export PATH=$PATH:/opt/aws/bin",
                            "cfn-init -v || yum install aws-cfn-bootstrap -y",
                            Sub(
                                "cfn-init --region ${AWS::Region} "
                                f"-r {launch_template_title} -s ${{AWS::StackName}}"
                            ),
                            "# EOF",
                        ],
                    )
                ),
            ),
        )

    def render(self, template: Template) -> None:
        add_parameters(template, [ECS_AMI_ID])
        self.security_group = add_resource(
            template,
            SecurityGroup(
                f"{self.logical_id}SecurityGroup",
                GroupDescription=Sub(
                    "Group for hosts in ${ClusterName}",
                    ClusterName=self.cluster.cluster_ref,
                ),
                VpcId=self.cluster.vpc_id,
            ),
        )
        add_resource(
            template,
            InstanceProfile(
                f"{self.logical_id}InstanceProfile", Roles=[self.role.name]
            ),
        )
        self.launch_template = add_resource(template, self.render_launch_template())
        self.auto_scaling_group = add_resource(
            template,
            AutoScalingGroup(
                f"{self.logical_id}AutoScalingGroup",
                LaunchTemplate=LaunchTemplateSpecification(
                    LaunchTemplateId=Ref(self.launch_template),
                    Version=GetAtt(self.launch_template, "LatestVersionNumber"),
                ),
                MinSize=str(self.min_capacity),
                MaxSize=str(self.max_capacity),
                DesiredCapacity=str(self.desired_capacity)
                if self.desired_capacity is not None
                else NoValue,
                VPCZoneIdentifier=self.subnets,
            ),
        )
