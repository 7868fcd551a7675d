#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import json
import sys

from pytest import fixture, raises

from ecs_constructs import __version__
from ecs_constructs.cli import import_app_callable, main, main_parser
from ecs_constructs.common.settings import ConstructsSettings

APP_MODULE = """
from ecs_constructs.common.construct import App, Stack
from ecs_constructs.sqs.sqs_queue import Queue


def build(settings):
    app = App(settings)
    stack = Stack(app, settings.context.get("StackName", "QueueStack"))
    Queue(stack, "Queue")
    return app


def broken(settings):
    from ecs_constructs.ecs.container_image import ContainerImage
    from ecs_constructs.ecs.task_definition import FargateTaskDefinition

    app = App(settings)
    task_definition = FargateTaskDefinition(Stack(app, "Broken"), "TaskDef")
    task_definition.add_container(
        "sidecar", ContainerImage.from_registry("nginx"), essential=False
    )
    return app


def not_an_app(settings):
    return settings

NOT_CALLABLE = "build"
"""


@fixture()
def app_module(tmp_path, monkeypatch):
    (tmp_path / "constructs_cli_app.py").write_text(APP_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    yield "constructs_cli_app"
    sys.modules.pop("constructs_cli_app", None)


def test_parser():
    parser = main_parser()
    args = parser.parse_args(
        [
            "synth",
            "-a",
            "my_app:build",
            "-d",
            "/tmp/out",
            "--format",
            "yaml",
            "-c",
            "Env=prod",
            "-c",
            "Team=ops",
        ]
    )
    settings = ConstructsSettings(**vars(args))
    assert settings.command == "synth"
    assert settings.app_callable == "my_app:build"
    assert settings.output_dir == "/tmp/out"
    assert settings.format == "yaml"
    assert settings.context == {"Env": "prod", "Team": "ops"}

    with raises(SystemExit):
        parser.parse_args(["synth"])
    with raises(SystemExit):
        parser.parse_args(["synth", "-a", "my_app:build", "--format", "xml"])


def test_import_app_callable(app_module):
    assert callable(import_app_callable(f"{app_module}:build"))
    with raises(ValueError):
        import_app_callable(app_module)
    with raises(ValueError):
        import_app_callable(f"{app_module}:build:more")
    with raises(AttributeError):
        import_app_callable(f"{app_module}:missing")
    with raises(TypeError):
        import_app_callable(f"{app_module}:NOT_CALLABLE")
    with raises(ModuleNotFoundError):
        import_app_callable("no_such_constructs_module:build")


def test_synth_command(app_module, tmp_path, monkeypatch):
    output_dir = tmp_path / "templates"
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "ecs-constructs",
            "synth",
            "-a",
            f"{app_module}:build",
            "-d",
            str(output_dir),
            "-c",
            "StackName=Jobs",
        ],
    )
    assert main() == 0
    with open(output_dir / "Jobs.json") as template_fd:
        template = json.load(template_fd)
    assert template["Resources"]["Queue"]["Type"] == "AWS::SQS::Queue"


def test_synth_failures(app_module, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(
        sys,
        "argv",
        ["ecs-constructs", "synth", "-a", f"{app_module}:broken", "-d", str(tmp_path)],
    )
    assert main() == 1
    assert "[Broken/TaskDef]" in capsys.readouterr().err
    assert not (tmp_path / "Broken.json").exists()

    monkeypatch.setattr(
        sys,
        "argv",
        ["ecs-constructs", "synth", "-a", f"{app_module}:not_an_app"],
    )
    with raises(TypeError):
        main()


def test_version(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["ecs-constructs", "version"])
    assert main() == 0
    assert capsys.readouterr().out.strip() == __version__
