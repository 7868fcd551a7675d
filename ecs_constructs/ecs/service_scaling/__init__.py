# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Package to scale the number of tasks of the services, with target tracking, step and scheduled scaling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.cloudwatch import Metric
    from ecs_constructs.ecs.ecs_service import BaseService

from troposphere import NoValue, Ref, Sub, Template
from troposphere.applicationautoscaling import (
    ScalableTarget,
    ScalableTargetAction,
    ScalingPolicy,
    ScheduledAction,
    StepAdjustment,
    StepScalingPolicyConfiguration,
    SuspendedState,
)

from ecs_constructs.cloudwatch import define_alarm
from ecs_constructs.common.construct import Construct
from ecs_constructs.common.logging import LOG
from ecs_constructs.common.troposphere_tools import add_resource

from .helpers import (
    ADJUSTMENT_TYPES,
    define_tracking_target_configuration,
    generate_scaling_out_steps,
)

APPLICATION_AUTOSCALING_ROLE = Sub(
    "arn:${AWS::Partition}:iam::${AWS::AccountId}:role/"
    "ecs.application-autoscaling.${AWS::URLSuffix}/"
    "AWSServiceRoleForApplicationAutoScaling_ECSService"
)


class ScalableTaskCount(Construct):
    """
    Scalable target on the desired count of the ECS Service

    :ivar BaseService service:
    :ivar int min_capacity:
    :ivar int max_capacity:
    :ivar list[ScheduledAction] scheduled_actions:
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        service: BaseService,
        min_capacity: int = 1,
        max_capacity: int = None,
    ):
        if max_capacity is None:
            raise ValueError("max_capacity is required to scale the task count")
        if min_capacity < 0 or max_capacity < min_capacity:
            raise ValueError(
                f"Invalid range {min_capacity}-{max_capacity}. "
                "min_capacity must be positive and lower than max_capacity"
            )
        super().__init__(scope, id)
        self.service = service
        self.min_capacity = min_capacity
        self.max_capacity = max_capacity
        self.scheduled_actions = []
        self.cfn_resource = None

    @property
    def scalable_target_ref(self) -> Ref:
        return Ref(self.logical_id)

    def scale_on_cpu_utilization(
        self,
        id: str,
        target_utilization_percent: float,
        scale_in_cooldown: int = 300,
        scale_out_cooldown: int = 60,
        disable_scale_in: bool = False,
    ) -> TargetTrackingPolicy:
        return TargetTrackingPolicy(
            self,
            id,
            "cpu",
            target_utilization_percent,
            scale_in_cooldown,
            scale_out_cooldown,
            disable_scale_in,
        )

    def scale_on_memory_utilization(
        self,
        id: str,
        target_utilization_percent: float,
        scale_in_cooldown: int = 300,
        scale_out_cooldown: int = 60,
        disable_scale_in: bool = False,
    ) -> TargetTrackingPolicy:
        return TargetTrackingPolicy(
            self,
            id,
            "memory",
            target_utilization_percent,
            scale_in_cooldown,
            scale_out_cooldown,
            disable_scale_in,
        )

    def scale_on_metric(
        self,
        id: str,
        metric: Metric,
        scaling_steps: list,
        adjustment_type: str = "ChangeInCapacity",
        cooldown: int = 60,
    ) -> StepScalingPolicy:
        """
        Scales the tasks count by steps, from an alarm on the given metric.

        :param str id:
        :param Metric metric:
        :param list[dict] scaling_steps: steps with LowerBound, UpperBound and Count
        :param str adjustment_type: ChangeInCapacity, ExactCapacity or PercentChangeInCapacity
        :param int cooldown:
        """
        return StepScalingPolicy(
            self, id, metric, scaling_steps, adjustment_type, cooldown
        )

    def scale_on_schedule(
        self,
        id: str,
        schedule: str,
        min_capacity: int = None,
        max_capacity: int = None,
    ) -> ScheduledAction:
        """
        Changes the tasks count range on a schedule

        :param str id: name of the scheduled action
        :param str schedule: at(), rate() or cron() expression
        """
        if min_capacity is None and max_capacity is None:
            raise ValueError(
                f"{id} - At least one of min_capacity or max_capacity must be set"
            )
        if not schedule.startswith(("at(", "rate(", "cron(")):
            raise ValueError(
                f"{id} - Schedule {schedule} must be an at(), rate() or cron() expression"
            )
        if id in [action.ScheduledActionName for action in self.scheduled_actions]:
            raise ValueError(f"{self.path} - Scheduled action {id} is already defined")
        action = ScheduledAction(
            ScheduledActionName=id,
            Schedule=schedule,
            ScalableTargetAction=ScalableTargetAction(
                MinCapacity=min_capacity if min_capacity is not None else NoValue,
                MaxCapacity=max_capacity if max_capacity is not None else NoValue,
            ),
        )
        self.scheduled_actions.append(action)
        return action

    def render(self, template: Template) -> None:
        self.cfn_resource = ScalableTarget(
            self.logical_id,
            MaxCapacity=self.max_capacity,
            MinCapacity=self.min_capacity,
            ScalableDimension="ecs:service:DesiredCount",
            ServiceNamespace="ecs",
            RoleARN=APPLICATION_AUTOSCALING_ROLE,
            ResourceId=Sub(
                "service/${ClusterName}/${ServiceName}",
                ClusterName=self.service.cluster.cluster_ref,
                ServiceName=self.service.name,
            ),
            ScheduledActions=self.scheduled_actions
            if self.scheduled_actions
            else NoValue,
            SuspendedState=SuspendedState(DynamicScalingInSuspended=False),
        )
        add_resource(template, self.cfn_resource)


class TargetTrackingPolicy(Construct):
    """
    Scaling policy keeping the service average CPU or Memory utilization around the target value
    """

    def __init__(
        self,
        scalable_task_count: ScalableTaskCount,
        id: str,
        metric_key: str,
        target_value: float,
        scale_in_cooldown: int = 300,
        scale_out_cooldown: int = 60,
        disable_scale_in: bool = False,
    ):
        configuration = define_tracking_target_configuration(
            metric_key,
            target_value,
            scale_in_cooldown,
            scale_out_cooldown,
            disable_scale_in,
        )
        super().__init__(scalable_task_count, id)
        self.scalable_task_count = scalable_task_count
        self.configuration = configuration
        self.cfn_resource = None

    def render(self, template: Template) -> None:
        self.cfn_resource = ScalingPolicy(
            self.logical_id,
            PolicyName=self.logical_id,
            PolicyType="TargetTrackingScaling",
            ScalingTargetId=self.scalable_task_count.scalable_target_ref,
            TargetTrackingScalingPolicyConfiguration=self.configuration,
        )
        add_resource(template, self.cfn_resource)


class StepScalingPolicy(Construct):
    """
    Scaling out policy with steps, and a scaling in policy back to the minimum capacity,
    both triggered by an alarm on the metric.
    """

    def __init__(
        self,
        scalable_task_count: ScalableTaskCount,
        id: str,
        metric: Metric,
        scaling_steps: list,
        adjustment_type: str = "ChangeInCapacity",
        cooldown: int = 60,
    ):
        if adjustment_type not in ADJUSTMENT_TYPES:
            raise ValueError(
                f"Adjustment type {adjustment_type} is invalid. Must be one of",
                ADJUSTMENT_TYPES,
            )
        step_adjustments = generate_scaling_out_steps(scaling_steps)
        super().__init__(scalable_task_count, id)
        self.scalable_task_count = scalable_task_count
        self.metric = metric
        self.adjustment_type = adjustment_type
        self.cooldown = cooldown
        self.step_adjustments = step_adjustments
        last_count = step_adjustments[-1].ScalingAdjustment
        if (
            adjustment_type == "ExactCapacity"
            and last_count > scalable_task_count.max_capacity
        ):
            LOG.warning(
                f"{self.path} - The current maximum in your Range is {scalable_task_count.max_capacity} "
                f"whereas you defined {last_count} for step scaling. Adjusting to step scaling max."
            )
            scalable_task_count.max_capacity = last_count
        self.scaling_out_policy = None
        self.scaling_in_policy = None
        self.alarm = None

    @property
    def threshold(self) -> int:
        return self.step_adjustments[0].MetricIntervalLowerBound

    def render(self, template: Template) -> None:
        self.scaling_out_policy = add_resource(
            template,
            ScalingPolicy(
                f"{self.logical_id}ScalingOut",
                PolicyName=f"{self.logical_id}ScalingOut",
                PolicyType="StepScaling",
                ScalingTargetId=self.scalable_task_count.scalable_target_ref,
                StepScalingPolicyConfiguration=StepScalingPolicyConfiguration(
                    AdjustmentType=self.adjustment_type,
                    StepAdjustments=self.step_adjustments,
                    Cooldown=self.cooldown,
                ),
            ),
        )
        self.scaling_in_policy = add_resource(
            template,
            ScalingPolicy(
                f"{self.logical_id}ScalingIn",
                PolicyName=f"{self.logical_id}ScalingIn",
                PolicyType="StepScaling",
                ScalingTargetId=self.scalable_task_count.scalable_target_ref,
                StepScalingPolicyConfiguration=StepScalingPolicyConfiguration(
                    AdjustmentType="ExactCapacity",
                    Cooldown=self.cooldown,
                    StepAdjustments=[
                        StepAdjustment(
                            MetricIntervalUpperBound=0,
                            ScalingAdjustment=self.scalable_task_count.min_capacity,
                        ),
                    ],
                ),
            ),
        )
        self.alarm = add_resource(
            template,
            define_alarm(
                f"{self.logical_id}Alarm",
                self.metric,
                self.threshold,
                alarm_actions=[Ref(self.scaling_out_policy)],
                ok_actions=[Ref(self.scaling_in_policy)],
            ),
        )
