#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Constructs tree: App, Stack and the Construct every resource builds on.

Constructs only record their settings when defined. Values are resolved and the troposphere
objects created when the Stack is synthesized.
"""

from __future__ import annotations

from troposphere import Template

from ecs_constructs.common import NONALPHANUM
from ecs_constructs.common.files import FileArtifact
from ecs_constructs.common.logging import LOG
from ecs_constructs.common.metadata import ConstructMetadata
from ecs_constructs.common.settings import ConstructsSettings
from ecs_constructs.common.troposphere_tools import build_template
from ecs_constructs.exceptions import ValidationError


class Construct:
    """
    Node of the constructs tree.

    :ivar Construct scope: parent construct
    :ivar str id: identifier of the construct, unique amongst its siblings
    :ivar list[Construct] children:
    :ivar ConstructMetadata metadata: diagnostics of the construct
    """

    def __init__(self, scope: Construct | None, id: str):
        if not isinstance(id, str) or not id:
            raise ValueError("Construct id must be a non-empty string. Got", id)
        if "/" in id:
            raise ValueError(f"Construct id {id} cannot contain '/'")
        self.scope = scope
        self.id = id
        self.children = []
        if scope is not None:
            scope.add_child(self)
        self.metadata = ConstructMetadata(self.path)

    def __repr__(self):
        return self.path

    def add_child(self, child: Construct) -> None:
        if child.id in [existing.id for existing in self.children]:
            raise ValueError(
                f"There is already a construct with id {child.id} in {self.path}"
            )
        self.children.append(child)

    @property
    def scopes(self) -> list:
        """
        Constructs from the top of the tree down to this one, App excluded.
        """
        nodes = []
        node = self
        while node is not None:
            if not isinstance(node, App):
                nodes.insert(0, node)
            node = node.scope
        return nodes

    @property
    def path(self) -> str:
        return "/".join(node.id for node in self.scopes) or self.id

    @property
    def stack(self) -> Stack:
        node = self
        while node is not None:
            if isinstance(node, Stack):
                return node
            node = node.scope
        raise AttributeError(f"{self.id} is not defined within a Stack")

    @property
    def logical_id(self) -> str:
        """
        CFN logical ID of the construct, derived from the path of the construct within its stack.
        """
        if isinstance(self, Stack):
            return NONALPHANUM.sub("", self.id)
        stack = self.stack
        ids = []
        for node in self.scopes[self.scopes.index(stack) + 1 :]:
            ids.append(node.id)
        return NONALPHANUM.sub("", "".join(ids))

    def find_all(self) -> list:
        """
        All the constructs of the tree from this one, depth first, in definition order.
        """
        constructs = [self]
        for child in self.children:
            constructs += child.find_all()
        return constructs

    def prepare(self) -> None:
        """
        Last chance for the construct to set its defaults, before validation. Called at synthesis.
        """
        pass

    def validate(self) -> list:
        """
        Hard errors which prevent the template from being synthesized. Called at synthesis.

        :return: list of error messages
        :rtype: list[str]
        """
        return []

    def render(self, template: Template) -> None:
        """
        Adds the CFN resources of the construct to the template. Called at synthesis, after validate.
        """
        pass


class Stack(Construct):
    """
    A CFN stack, rendered into a single template.

    :ivar troposphere.Template template: The last template synthesized
    """

    def __init__(self, scope: App | None, id: str, description: str = None):
        super().__init__(scope, id)
        self.description = description
        self.template = None

    def synthesize(self) -> Template:
        """
        Validates all the constructs of the stack and renders them into a new template.

        :raises ValidationError: if any of the constructs reported errors
        :rtype: troposphere.Template
        """
        for construct in self.find_all():
            construct.prepare()
        constructs = self.find_all()
        errors = []
        for construct in constructs:
            for error in construct.validate():
                errors.append(f"[{construct.path}] {error}")
        if errors:
            for error in errors:
                LOG.error(error)
            raise ValidationError(
                f"Stack {self.id} failed validation with {len(errors)} error(s)", errors
            )
        template = build_template(self.description)
        for construct in constructs:
            construct.render(template)
        self.template = template
        LOG.debug(
            f"{self.id} - synthesized with {len(template.resources)} resource(s)"
        )
        return template

    @property
    def warnings(self) -> list:
        """
        All the warnings of the constructs in the stack, prefixed with the construct path
        """
        return [
            f"[{construct.path}] {warning}"
            for construct in self.find_all()
            for warning in construct.metadata.warnings
        ]


class App(Construct):
    """
    Root of the constructs tree, holding the stacks.

    :ivar ConstructsSettings settings:
    """

    def __init__(self, settings: ConstructsSettings = None):
        self.settings = settings if settings else ConstructsSettings()
        super().__init__(None, "App")

    @property
    def stacks(self) -> list:
        return [child for child in self.children if isinstance(child, Stack)]

    def synth(self) -> list:
        """
        Synthesizes all the stacks and writes the templates to the output directory.

        :return: the files written
        :rtype: list[FileArtifact]
        """
        artifacts = []
        for stack in self.stacks:
            template = stack.synthesize()
            artifact = FileArtifact(stack.id, self.settings, template=template)
            artifact.write(self.settings)
            artifacts.append(artifact)
        return artifacts
