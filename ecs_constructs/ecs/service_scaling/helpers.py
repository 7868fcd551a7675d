#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from compose_x_common.compose_x_common import keyisset, keypresent
from troposphere import NoValue
from troposphere.applicationautoscaling import (
    PredefinedMetricSpecification,
    StepAdjustment,
    TargetTrackingScalingPolicyConfiguration,
)

from ecs_constructs.common.logging import LOG

ADJUSTMENT_TYPES = ["ChangeInCapacity", "ExactCapacity", "PercentChangeInCapacity"]

PREDEFINED_METRICS = {
    "cpu": "ECSServiceAverageCPUUtilization",
    "memory": "ECSServiceAverageMemoryUtilization",
}


def validate_steps_definition(steps: list) -> list:
    """
    Validates that the steps definition is correct

    :param list steps: list of step definitions
    :return: the steps, unordered
    :raises KeyError: if a step has keys other than LowerBound, UpperBound and Count
    :raises ValueError: if the LowerBound is not strictly lower than the UpperBound
    """
    if not steps:
        raise ValueError("At least one scaling step must be defined")
    allowed_keys = ["LowerBound", "UpperBound", "Count"]
    unordered = []
    for step_def in steps:
        if not all(key in allowed_keys for key in step_def.keys()):
            raise KeyError(
                "Step definition only allows",
                allowed_keys,
                "Got",
                list(step_def.keys()),
            )
        if not keypresent("LowerBound", step_def) or not keypresent(
            "Count", step_def
        ):
            raise KeyError("LowerBound and Count are required for each step", step_def)
        if (
            keyisset("UpperBound", step_def)
            and step_def["LowerBound"] >= step_def["UpperBound"]
        ):
            raise ValueError(
                "The LowerBound value must strictly lower than the upper bound",
                step_def,
            )
        unordered.append(step_def)
    return unordered


def rectify_scaling_steps(cfn_steps: list) -> None:
    """
    Function to rectify settings to avoid errors

    :param list cfn_steps:
    """
    if getattr(cfn_steps[-1], "MetricIntervalUpperBound", NoValue) is not NoValue:
        LOG.warning("The last upper bound shall not be set. Deleting value to comply")
        setattr(cfn_steps[-1], "MetricIntervalUpperBound", NoValue)
    if cfn_steps[0].MetricIntervalLowerBound == 0:
        LOG.warning(
            "You defined the lower bound to 0. To enable alarm threshold we are setting it to 1"
        )
        setattr(cfn_steps[0], "MetricIntervalLowerBound", 1)


def define_step_adjustments(ordered: list) -> list:
    """
    Creates the StepAdjustment for each step, which must not overlap

    :param list ordered: steps definitions, ordered by LowerBound
    :rtype: list[StepAdjustment]
    """
    cfn_steps = []
    pre_upper = 0
    for step_def in ordered:
        if pre_upper and not int(step_def["LowerBound"]) >= pre_upper:
            raise ValueError(
                f"The value for lower bound is {step_def['LowerBound']},"
                f"which is lower than the previous UpperBound, {pre_upper}"
            )
        if pre_upper is None and cfn_steps:
            raise ValueError(
                "Only the last step can be without UpperBound", step_def
            )
        cfn_steps.append(
            StepAdjustment(
                MetricIntervalLowerBound=int(step_def["LowerBound"]),
                MetricIntervalUpperBound=int(step_def["UpperBound"])
                if keyisset("UpperBound", step_def)
                else NoValue,
                ScalingAdjustment=int(step_def["Count"]),
            )
        )
        pre_upper = (
            int(step_def["UpperBound"]) if keyisset("UpperBound", step_def) else None
        )
    return cfn_steps


def generate_scaling_out_steps(steps: list) -> list:
    """
    Function to generate the scaling steps

    :param list steps:
    :return: the step adjustments, ordered
    :rtype: list[StepAdjustment]
    """
    ordered = sorted(validate_steps_definition(steps), key=lambda i: i["LowerBound"])
    cfn_steps = define_step_adjustments(ordered)
    rectify_scaling_steps(cfn_steps)
    return cfn_steps


def define_tracking_target_configuration(
    config_key: str,
    target_value: float,
    scale_in_cooldown: int = 300,
    scale_out_cooldown: int = 60,
    disable_scale_in: bool = False,
) -> TargetTrackingScalingPolicyConfiguration:
    """
    Function to create the configuration for target tracking scaling

    :param str config_key: cpu or memory
    :param float target_value: the utilization percentage to track
    :param int scale_in_cooldown:
    :param int scale_out_cooldown:
    :param bool disable_scale_in:
    """
    if config_key not in PREDEFINED_METRICS.keys():
        raise KeyError(
            config_key, "Is invalid. Expected one of", list(PREDEFINED_METRICS.keys())
        )
    if not 0 < target_value <= 100:
        raise ValueError(
            f"Target utilization must be between 0 and 100. Got {target_value}"
        )
    specification = PredefinedMetricSpecification(
        PredefinedMetricType=PREDEFINED_METRICS[config_key]
    )
    return TargetTrackingScalingPolicyConfiguration(
        DisableScaleIn=disable_scale_in,
        ScaleInCooldown=scale_in_cooldown,
        ScaleOutCooldown=scale_out_cooldown,
        TargetValue=float(target_value),
        PredefinedMetricSpecification=specification,
    )
