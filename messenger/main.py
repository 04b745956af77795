"""Command line entry point for the DingTalk messenger."""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from messenger.config.environment import EnvironmentConfig
from messenger.config.exceptions import ConfigurationError
from messenger.config.loader import load_config
from messenger.config.models import AppConfig
from messenger.dingtalk import AccessTokenCache, Credential, DingTalkClient, DingTalkURLBuilder
from messenger.exceptions import MessageError
from messenger.logging import get_logger
from messenger.logging.config import configure_logging
from messenger.mail import MailSender, MailSettings
from messenger.robot import AtDirective, DingTalkRobot, MarkdownMessage

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_url_builder(app_config: AppConfig) -> DingTalkURLBuilder:
    return DingTalkURLBuilder(
        api_base_url=app_config.dingtalk.api_base_url,
        client_base_url=app_config.dingtalk.client_base_url,
    )


def build_client(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    token_cache: Optional[AccessTokenCache] = None,
) -> DingTalkClient:
    """Wire a DingTalkClient from configuration.

    The token cache is created here unless the caller passes one in, so all
    clients built by one caller can share it.
    """
    env_config.require("app_key", "app_secret")
    credential = Credential(
        app_key=env_config.app_key,
        app_secret=env_config.app_secret,
        agent_id=env_config.agent_id or "",
        corp_id=env_config.corp_id or "",
    )
    if token_cache is None:
        token_cache = AccessTokenCache(
            ttl_seconds=app_config.dingtalk.token_ttl,
            cleanup_interval_seconds=app_config.dingtalk.token_cleanup_interval,
        )
    return DingTalkClient(
        credential,
        token_cache,
        url_builder=build_url_builder(app_config),
        timeout=app_config.dingtalk.request_timeout,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dingtalk-messenger",
        description="Send DingTalk robot messages and mail, resolve DingTalk users",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    robot = commands.add_parser("robot-send", help="Send a markdown message via the chat robot")
    robot.add_argument("--title", required=True)
    robot.add_argument("--text", required=True, help="Markdown body")
    robot.add_argument("--at-mobile", action="append", default=[], dest="at_mobiles",
                       help="Mobile number to mention (repeatable)")
    robot.add_argument("--at-all", action="store_true", help="Mention everyone in the group")

    detail = commands.add_parser("user-detail", help="Resolve a user from a temp login code")
    detail.add_argument("--code", required=True, help="Temp code from the login callback")

    login = commands.add_parser("login-url", help="Print the DingTalk login URL")
    login.add_argument("--state", required=True)
    login.add_argument("--callback", required=True, help="Redirect URL receiving the temp code")

    link = commands.add_parser("open-link", help="Print an in-app deep link for a URL")
    link.add_argument("--target", required=True)
    link.add_argument("--slide", action="store_true", help="Open in the side panel instead of the workbench")

    mail = commands.add_parser("mail", help="Send a plain-text mail")
    mail.add_argument("--subject", required=True)
    mail.add_argument("--to", required=True, help="Comma-separated recipients")
    mail.add_argument("--cc", default="", help="Comma-separated Cc recipients")
    mail.add_argument("--from-alias", default=None, help="Display name of the sender")
    body = mail.add_mutually_exclusive_group(required=True)
    body.add_argument("--body")
    body.add_argument("--body-file", type=Path)
    mail.add_argument("--attach", action="append", default=[], help="File to attach (repeatable)")

    return parser


def run_command(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> None:
    """Execute the selected subcommand, printing results to stdout.

    Raises:
        MessageError: If the operation fails
        ConfigurationError: If a required setting is missing
    """
    if args.command == "robot-send":
        env_config.require("robot_token")
        at = AtDirective(at_mobiles=args.at_mobiles, is_at_all=args.at_all)
        with DingTalkRobot(env_config.robot_token, url_builder=build_url_builder(app_config)) as robot:
            robot.send(MarkdownMessage(title=args.title, text=args.text, at=at))

    elif args.command == "user-detail":
        with build_client(app_config, env_config) as client:
            detail = client.resolve_user_detail(args.code)
        print(json.dumps(detail.model_dump(), ensure_ascii=False, indent=2))

    elif args.command == "login-url":
        env_config.require("app_key")
        urls = build_url_builder(app_config)
        print(urls.login_url(env_config.app_key, args.state, args.callback))

    elif args.command == "open-link":
        urls = build_url_builder(app_config)
        if args.slide:
            print(urls.slide_link(args.target))
        else:
            env_config.require("corp_id", "agent_id")
            print(urls.workbench_link(env_config.corp_id, env_config.agent_id, args.target))

    elif args.command == "mail":
        settings = MailSettings.from_environment(env_config, use_tls=app_config.mail.use_tls)
        if args.body_file is not None:
            try:
                body = args.body_file.read_text(encoding="utf-8")
            except OSError as e:
                raise MessageError(f"Cannot read body file {args.body_file}: {e}") from e
        else:
            body = args.body
        from_alias = args.from_alias or app_config.mail.default_from_alias
        MailSender(settings).send_text_with_attachments(
            args.subject, from_alias, args.to, args.cc, body, args.attach
        )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0 on success, 1 on configuration or delivery errors
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        environment = app_config.environment or os.environ.get("ENVIRONMENT", "local")
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=environment,
        )
        logger.debug(
            "Running command",
            extra={"event": "cli.command.started", "command": args.command},
        )
        run_command(args, app_config, env_config)
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except MessageError as e:
        logger.error(
            f"Command {args.command} failed: {e}",
            extra={"event": "cli.command.failed", "command": args.command, "error_type": type(e).__name__},
        )
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
