#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
EventBridge rules, triggering ECS tasks on a schedule.
"""

from __future__ import annotations

import re

from troposphere import NoValue, Template
from troposphere.events import Rule

from ecs_constructs.common.construct import Construct
from ecs_constructs.common.troposphere_tools import add_resource

SCHEDULE_EXPRESSION = re.compile(r"^(rate|cron)\(.+\)$")


class EventRule(Construct):
    """
    Rule triggering its targets on schedule

    :ivar str schedule_expression: rate() or cron() expression
    :ivar list targets: the targets of the rule, rendered with their bind() method
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        schedule_expression: str,
        description: str = None,
        enabled: bool = True,
        rule_name: str = None,
    ):
        if not isinstance(schedule_expression, str) or not SCHEDULE_EXPRESSION.match(
            schedule_expression
        ):
            raise ValueError(
                f"{id} - schedule expression {schedule_expression} is invalid. "
                "Must be a rate() or cron() expression"
            )
        super().__init__(scope, id)
        self.schedule_expression = schedule_expression
        self.description = description
        self.enabled = enabled
        self.rule_name = rule_name
        self.targets = []
        self.cfn_resource = None

    def add_target(self, target) -> None:
        """
        :param target: object with a bind(rule) method returning a troposphere.events.Target
        """
        if target in self.targets:
            return
        self.targets.append(target)

    def validate(self) -> list:
        if len(self.targets) > 5:
            return [f"A rule can have up to 5 targets. Got {len(self.targets)}"]
        return []

    def render(self, template: Template) -> None:
        self.cfn_resource = Rule(
            self.logical_id,
            Name=self.rule_name if self.rule_name else NoValue,
            Description=self.description if self.description else NoValue,
            ScheduleExpression=self.schedule_expression,
            State="ENABLED" if self.enabled else "DISABLED",
            Targets=[target.bind(self) for target in self.targets]
            if self.targets
            else NoValue,
        )
        add_resource(template, self.cfn_resource)
