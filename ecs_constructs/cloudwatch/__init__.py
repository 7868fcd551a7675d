#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
CloudWatch metrics and alarms used to scale the services.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from troposphere import NoValue
from troposphere.cloudwatch import Alarm, MetricDimension

STATISTICS = ["SampleCount", "Average", "Sum", "Minimum", "Maximum"]


@dataclass
class Metric:
    """
    CloudWatch metric, identified by its namespace, name and dimensions.
    """

    namespace: str
    metric_name: str
    dimensions: dict = field(default_factory=dict)
    statistic: str = "Average"
    period: int = 300

    def __post_init__(self):
        if self.statistic not in STATISTICS:
            raise ValueError(
                f"Statistic {self.statistic} is invalid. Must be one of", STATISTICS
            )
        if self.period % 60:
            raise ValueError(f"Period must be a multiple of 60. Got {self.period}")

    def with_statistic(self, statistic: str) -> Metric:
        return Metric(
            self.namespace, self.metric_name, self.dimensions, statistic, self.period
        )

    def render_dimensions(self) -> list:
        return [
            MetricDimension(Name=name, Value=value)
            for name, value in self.dimensions.items()
        ]


def define_alarm(
    title: str,
    metric: Metric,
    threshold: float,
    alarm_actions: list,
    ok_actions: list = None,
    comparison_operator: str = "GreaterThanOrEqualToThreshold",
    evaluation_periods: int = 1,
) -> Alarm:
    """
    Function to create an alarm on the metric, triggering the given actions
    """
    return Alarm(
        title,
        ActionsEnabled=True,
        AlarmActions=alarm_actions,
        AlarmDescription=f"{metric.namespace}/{metric.metric_name} watch for {title}",
        ComparisonOperator=comparison_operator,
        DatapointsToAlarm=1,
        Dimensions=metric.render_dimensions(),
        EvaluationPeriods=evaluation_periods,
        InsufficientDataActions=ok_actions if ok_actions else NoValue,
        MetricName=metric.metric_name,
        Namespace=metric.namespace,
        OKActions=ok_actions if ok_actions else NoValue,
        Period=metric.period,
        Statistic=metric.statistic,
        TreatMissingData="notBreaching",
        Threshold=float(threshold),
    )
