#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Console script for ecs_constructs.
"""

import argparse
import importlib
import logging
import os
import sys

from ecs_constructs import __version__
from ecs_constructs.common.construct import App
from ecs_constructs.common.logging import LOG
from ecs_constructs.common.settings import ConstructsSettings
from ecs_constructs.exceptions import ValidationError


class ArgparseHelper(argparse._HelpAction):
    """
    Used to help print top level '--help' arguments from argparse
    when used with subparsers
    """

    def __call__(self, parser, namespace, values, option_string=None):
        parser.print_help()
        print()
        subparsers_actions = [
            action
            for action in parser._actions
            if isinstance(action, argparse._SubParsersAction)
        ]
        for subparsers_action in subparsers_actions:
            for choice, subparser in list(subparsers_action.choices.items()):
                if choice in [cmd["name"] for cmd in ConstructsSettings.active_commands]:
                    print(f"Command '{choice}'")
                    print(subparser.format_usage())
        parser.exit()


def main_parser():
    """
    Console script for ecs_constructs.
    """
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "-h",
        "--help",
        action=ArgparseHelper,
        help="show this help message and exit",
    )

    cmd_parsers = parser.add_subparsers(
        dest=ConstructsSettings.command_arg, help="Command to execute."
    )
    base_command_parser = argparse.ArgumentParser(add_help=False)
    base_command_parser.add_argument(
        "-a",
        "--app",
        required=True,
        type=str,
        dest=ConstructsSettings.app_arg,
        help="module:callable returning the App to synthesize, i.e. my_app.stacks:build",
    )
    base_command_parser.add_argument(
        "-n",
        "--name",
        help="Name of your application",
        required=False,
        type=str,
        dest=ConstructsSettings.name_arg,
    )
    base_command_parser.add_argument(
        "-d",
        "--output-dir",
        required=False,
        help="Output directory to write all the templates to.",
        type=str,
        dest=ConstructsSettings.output_dir_arg,
        default=ConstructsSettings.default_output_dir,
    )
    base_command_parser.add_argument(
        "--format",
        help="Defines the format you want to use.",
        type=str,
        dest=ConstructsSettings.format_arg,
        choices=ConstructsSettings.allowed_formats,
        default=ConstructsSettings.default_format,
    )
    base_command_parser.add_argument(
        "-c",
        "--context",
        dest=ConstructsSettings.context_arg,
        action="append",
        default=[],
        help="key=value made available to the application in settings.context",
    )
    base_command_parser.add_argument(
        "--loglevel", type=str, help="Log level. Defaults to INFO", required=False
    )
    for command in ConstructsSettings.active_commands:
        cmd_parsers.add_parser(
            name=command["name"],
            help=command["help"],
            parents=[base_command_parser],
        )
    for command in ConstructsSettings.neutral_commands:
        cmd_parsers.add_parser(name=command["name"], help=command["help"])
    return parser


def set_log_level(loglevel: str) -> None:
    valid_levels = [
        "FATAL",
        "CRITICAL",
        "ERROR",
        "WARNING",
        "WARN",
        "INFO",
        "DEBUG",
    ]
    if loglevel.upper() in valid_levels:
        LOG.setLevel(logging.getLevelName(loglevel.upper()))
        LOG.handlers[0].setLevel(logging.getLevelName(loglevel.upper()))
    else:
        print(f"Log level value {loglevel} is invalid. Must me one of {valid_levels}")


def import_app_callable(app_path: str):
    """
    Imports the function building the App from its module:callable path

    :param str app_path:
    :raises ValueError: if the path is not module:callable
    :raises TypeError: if the imported object is not callable
    """
    if not app_path or app_path.count(":") != 1:
        raise ValueError(f"App {app_path} is invalid. Expected module:callable")
    module_name, callable_name = app_path.split(":")
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())
    module = importlib.import_module(module_name)
    app_callable = getattr(module, callable_name)
    if not callable(app_callable):
        raise TypeError(f"{app_path} is not callable")
    return app_callable


def synth(settings: ConstructsSettings) -> App:
    """
    Builds the App with the settings and writes the stacks templates

    :return: the synthesized App
    """
    app_callable = import_app_callable(settings.app_callable)
    app = app_callable(settings)
    if not isinstance(app, App):
        raise TypeError(
            f"{settings.app_callable} must return an", App, "Got", type(app)
        )
    app.settings = settings
    app.synth()
    return app


def main():
    """
    Main entry point for CLI
    :return: status code
    """
    parser = main_parser()
    if len(sys.argv) == 1:
        parser.print_help()
        sys.exit()
    args = parser.parse_args()
    if getattr(args, "loglevel", None):
        set_log_level(args.loglevel)
    LOG.debug(args)
    if args.command is None:
        parser.print_usage()
        return 1
    if args.command == "version":
        print(__version__)
        return 0
    settings = ConstructsSettings(**vars(args))
    LOG.debug(settings)
    try:
        app = synth(settings)
    except ValidationError as error:
        for message in error.errors:
            print(message, file=sys.stderr)
        return 1
    for stack in app.stacks:
        if stack.warnings:
            LOG.warning(f"{stack.id} - synthesized with {len(stack.warnings)} warning(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover
