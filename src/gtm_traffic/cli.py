"""
Command-line interface for the GTM traffic manager.

This module provides the main CLI entry point with commands for:
- update-datacenter: Enable or disable a datacenter in every property of a domain
- update-property: Change traffic targets or liveness tests of one property
- query-status: Report traffic and IP availability of a property or datacenters
- config: Configuration management
"""

import argparse
import json
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Callable, Mapping, Optional

from dotenv import load_dotenv

from . import __version__
from .audit_logger import AuditLogger
from .config import ApiConfig, LoggingConfig, MonitorConfig, ReportConfig, SystemConfig
from .config_client import ConfigClient
from .descriptor import DesiredChange, collect_target_overrides, parse_bool
from .enums import MonitorState
from .exceptions import GTMError, NotFoundError, ValidationError
from .i18n import SUPPORTED_LANGUAGES, get_message
from .monitor import PollOutcome
from .orchestrator import (
    ReportingOrchestrator,
    UpdateOrchestrator,
    UpdateSummary,
    resolve_datacenters,
)
from .render import (
    render_datacenter_report,
    render_property_report,
    render_update_summary,
    to_json,
)
from .reports_client import ReportsClient


DEFAULT_CONFIG_PATH = Path.home() / ".gtm_traffic" / "config.json"

ENV_BASE_URL = "GTM_BASE_URL"
ENV_AUTH_TOKEN = "GTM_AUTH_TOKEN"
ENV_TIMEOUT = "GTM_TIMEOUT"
ENV_POLL_INTERVAL = "GTM_POLL_INTERVAL"
ENV_LANGUAGE = "GTM_LANGUAGE"


def create_default_config(language: str = "en", base_url: str = "") -> SystemConfig:
    """
    Create a default system configuration.

    Args:
        language: Output language ('en' or 'de')
        base_url: API host, e.g. 'https://akab-xxxx.luna.akamaiapis.net'

    Returns:
        SystemConfig with default settings
    """
    return SystemConfig(
        api=ApiConfig(base_url=base_url),
        monitor=MonitorConfig(poll_interval_seconds=5.0, timeout_seconds=300.0),
        report=ReportConfig(period="15m"),
        logging=LoggingConfig(level="info", output_format="text"),
        language=language,
    )


def load_config_from_file(config_path: Path) -> Optional[SystemConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        api_data = data.get("api", {})
        api = ApiConfig(
            base_url=api_data.get("base_url", ""),
            auth_token=api_data.get("auth_token"),
            timeout_seconds=float(api_data.get("timeout_seconds", 30.0)),
            headers=dict(api_data.get("headers", {})),
        )

        monitor_data = data.get("monitor", {})
        monitor = MonitorConfig(
            poll_interval_seconds=float(monitor_data.get("poll_interval_seconds", 5.0)),
            timeout_seconds=float(monitor_data.get("timeout_seconds", 300.0)),
        )

        report_data = data.get("report", {})
        report = ReportConfig(period=report_data.get("period", "15m"))

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        )

        return SystemConfig(
            api=api,
            monitor=monitor,
            report=report,
            logging=logging_config,
            language=data.get("language", "en"),
        )

    except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None


def save_config_to_file(config: SystemConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "api": {
                "base_url": config.api.base_url,
                "auth_token": config.api.auth_token,
                "timeout_seconds": config.api.timeout_seconds,
                "headers": config.api.headers,
            },
            "monitor": {
                "poll_interval_seconds": config.monitor.poll_interval_seconds,
                "timeout_seconds": config.monitor.timeout_seconds,
            },
            "report": {
                "period": config.report.period,
            },
            "logging": {
                "level": config.logging.level,
                "output_format": config.logging.output_format,
            },
            "language": config.language,
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def apply_environment(
    config: SystemConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> SystemConfig:
    """
    Overlay GTM_* environment variables on a configuration.

    Raises:
        ValidationError: If a numeric variable does not parse
    """
    env = os.environ if environ is None else environ

    api = config.api
    if env.get(ENV_BASE_URL):
        api = replace(api, base_url=env[ENV_BASE_URL].strip())
    if env.get(ENV_AUTH_TOKEN):
        api = replace(api, auth_token=env[ENV_AUTH_TOKEN].strip())

    monitor = config.monitor
    if env.get(ENV_TIMEOUT):
        monitor = replace(monitor, timeout_seconds=_env_float(env, ENV_TIMEOUT))
    if env.get(ENV_POLL_INTERVAL):
        monitor = replace(monitor, poll_interval_seconds=_env_float(env, ENV_POLL_INTERVAL))

    language = config.language
    if env.get(ENV_LANGUAGE):
        language = env[ENV_LANGUAGE].strip().lower()

    return replace(config, api=api, monitor=monitor, language=language)


def _env_float(env: Mapping[str, str], name: str) -> float:
    try:
        return float(env[name])
    except ValueError:
        raise ValidationError(
            code="invalid_config",
            message=f"{name} must be a number",
            details={"variable": name, "value": env[name]},
        )


def resolve_config(args: argparse.Namespace) -> Optional[SystemConfig]:
    """
    Build the effective configuration for a command.

    Sources, later wins: defaults, config file, environment (.env included),
    command-line flags.
    """
    config_path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH
    config = load_config_from_file(config_path)
    if config is None:
        if args.config:
            print(f"Error: Could not load config from {args.config}", file=sys.stderr)
            return None
        config = create_default_config()

    load_dotenv()
    try:
        config = apply_environment(config)
    except ValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return None

    if getattr(args, "timeout", None) is not None:
        config = replace(config, monitor=replace(config.monitor, timeout_seconds=float(args.timeout)))
    if getattr(args, "interval", None) is not None:
        config = replace(
            config, monitor=replace(config.monitor, poll_interval_seconds=float(args.interval))
        )
    if getattr(args, "language", None):
        config = replace(config, language=args.language)

    if not config.api.base_url:
        print(
            f"Error: No API base URL configured (set {ENV_BASE_URL} or api.base_url in {config_path})",
            file=sys.stderr,
        )
        return None
    return config


def create_logger(config: SystemConfig, verbose: bool) -> Optional[AuditLogger]:
    """Audit logging to stderr, only in verbose mode."""
    if not verbose:
        return None
    return AuditLogger(
        output_format=config.logging.output_format,
        level=config.logging.level,
    )


def describe_error(
    error: GTMError,
    verbose: bool = False,
    language: Optional[str] = None,
    not_found_key: str = "error.remote",
    remote_key: str = "error.remote",
    **kwargs,
) -> str:
    """
    User-facing text for an error.

    Validation errors are always shown in full. Remote errors show a generic
    category message; the remote text is appended in verbose mode only.
    """
    if isinstance(error, ValidationError):
        return f"{get_message('error.validation', language)}: {error.message}"
    key = not_found_key if isinstance(error, NotFoundError) else remote_key
    generic = get_message(key, language, **kwargs)
    if verbose:
        return f"{generic}: {error.message}"
    return generic


def poll_printer(language: Optional[str], enabled: bool = True) -> Callable[[str, PollOutcome], None]:
    """Progress callback printing each poll outcome to stderr."""

    def on_poll(property_name: str, outcome: PollOutcome) -> None:
        if not enabled:
            return
        if outcome.state == MonitorState.PENDING:
            message = get_message("monitor.waiting", language)
            print(f"{message} ({property_name}, {outcome.elapsed_seconds:.0f}s)", file=sys.stderr)
            return
        message = get_message(f"monitor.{outcome.state.value}", language)
        print(f"{property_name}: {message}", file=sys.stderr)

    return on_poll


def print_summary(summary: UpdateSummary, as_json: bool, language: Optional[str]) -> None:
    if as_json:
        print(to_json(summary))
    else:
        print(render_update_summary(summary, language))


def enable_directive(args: argparse.Namespace) -> Optional[bool]:
    """True for --enable, False for --disable, None when neither is given."""
    if args.enable:
        return True
    if args.disable:
        return False
    return None


def cmd_update_datacenter(args: argparse.Namespace) -> int:
    """Handle the 'update-datacenter' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    language = config.language
    logger = create_logger(config, args.verbose)

    with ConfigClient(config.api) as client:
        try:
            datacenter_ids = resolve_datacenters(client, args.domain, args.datacenter or [])
            orchestrator = UpdateOrchestrator(
                client,
                config.monitor,
                logger=logger,
                on_poll=poll_printer(language, enabled=not args.json),
            )
            summary = orchestrator.update_datacenter(
                args.domain,
                datacenter_ids,
                enabled=enable_directive(args),
                verbose=args.verbose,
                wait=args.complete,
                dry_run=args.dryrun,
            )
        except GTMError as e:
            print(describe_error(
                e, args.verbose, language,
                not_found_key="error.domain_not_found",
                domain=args.domain,
            ), file=sys.stderr)
            return 1

    print_summary(summary, args.json, language)
    return 1 if summary.all_failed else 0


def cmd_update_property(args: argparse.Namespace) -> int:
    """Handle the 'update-property' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    language = config.language
    logger = create_logger(config, args.verbose)

    enabled = enable_directive(args)

    with ConfigClient(config.api) as client:
        try:
            liveness_enabled = (
                parse_bool(args.liveness_enabled) if args.liveness_enabled is not None else None
            )
            targets = collect_target_overrides(args.target or [])
            datacenter_ids = resolve_datacenters(client, args.domain, args.datacenter or [])
            change = DesiredChange(
                datacenter_ids=tuple(datacenter_ids),
                enabled=enabled,
                weight=args.weight,
                servers=list(args.server) if args.server else None,
                targets=targets,
                liveness_tests=tuple(args.liveness_test or ()),
                liveness_enabled=liveness_enabled,
            )
            orchestrator = UpdateOrchestrator(
                client,
                config.monitor,
                logger=logger,
                on_poll=poll_printer(language, enabled=not args.json),
            )
            summary = orchestrator.update_property(
                args.domain,
                args.property,
                change,
                verbose=args.verbose,
                wait=args.complete,
                dry_run=args.dryrun,
            )
        except GTMError as e:
            print(describe_error(
                e, args.verbose, language,
                not_found_key="error.property_not_found",
                remote_key="error.update_failed",
                property=args.property,
                domain=args.domain,
            ), file=sys.stderr)
            return 1

    if summary.failed and not args.json:
        for failure in summary.failed:
            generic = get_message("error.update_failed", language, property=failure.property_name)
            text = f"{generic}: {failure.message}" if args.verbose else generic
            print(text, file=sys.stderr)
        return 1

    print_summary(summary, args.json, language)
    return 1 if summary.all_failed else 0


def cmd_query_status(args: argparse.Namespace) -> int:
    """Handle the 'query-status' command."""
    config = resolve_config(args)
    if config is None:
        return 1
    language = config.language
    logger = create_logger(config, args.verbose)

    with ConfigClient(config.api) as config_client, ReportsClient(config.api) as reports_client:
        orchestrator = ReportingOrchestrator(
            config_client,
            reports_client,
            config.report,
            logger=logger,
        )
        if args.property:
            try:
                report = orchestrator.query_property_status(args.domain, args.property)
            except GTMError as e:
                print(describe_error(
                    e, args.verbose, language,
                    not_found_key="error.property_not_found",
                    remote_key="error.property_status",
                    property=args.property,
                ), file=sys.stderr)
                return 1
            print(to_json(report) if args.json else render_property_report(report, language))
            return 0

        try:
            datacenter_ids = resolve_datacenters(config_client, args.domain, args.datacenter)
        except GTMError as e:
            print(describe_error(
                e, args.verbose, language,
                not_found_key="error.domain_not_found",
                remote_key="error.datacenter_list",
                domain=args.domain,
            ), file=sys.stderr)
            return 1
        try:
            status = orchestrator.query_datacenter_status(args.domain, datacenter_ids)
        except GTMError as e:
            print(describe_error(
                e, args.verbose, language,
                not_found_key="error.domain_not_found",
                remote_key="error.datacenter_status",
                domain=args.domain,
            ), file=sys.stderr)
            return 1
        print(to_json(status) if args.json else render_datacenter_report(status, language))
        return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return 1

        print(f"Configuration from: {config_path}")
        print(f"  Base URL: {config.api.base_url or '(unset)'}")
        print(f"  Auth token: {AuditLogger.MASK_VALUE if config.api.auth_token else '(unset)'}")
        print(f"  Request timeout: {config.api.timeout_seconds}s")
        print(f"  Poll interval: {config.monitor.poll_interval_seconds}s")
        print(f"  Completion timeout: {config.monitor.timeout_seconds}s")
        print(f"  Report period: {config.report.period}")
        print(f"  Log level: {config.logging.level}")
        print(f"  Language: {config.language}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return 1

        config = create_default_config(language=args.language or "en")
        if save_config_to_file(config, config_path):
            print(f"Configuration created at: {config_path}")
            return 0
        return 1

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
            return 1

        problems = validate_config(config)
        if problems:
            for problem in problems:
                print(f"Error: {problem}", file=sys.stderr)
            return 1
        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def validate_config(config: SystemConfig) -> list[str]:
    """Return a list of problems with a configuration (empty if valid)."""
    problems = []
    if not config.api.base_url:
        problems.append("api.base_url is not set")
    elif not config.api.base_url.startswith(("http://", "https://")):
        problems.append("api.base_url must start with http:// or https://")
    if config.api.timeout_seconds <= 0:
        problems.append("api.timeout_seconds must be positive")
    if config.monitor.poll_interval_seconds <= 0:
        problems.append("monitor.poll_interval_seconds must be positive")
    if config.monitor.timeout_seconds < 0:
        problems.append("monitor.timeout_seconds must not be negative")
    if config.logging.level not in ("debug", "info", "warn", "error"):
        problems.append(f"logging.level '{config.logging.level}' is not supported")
    if config.logging.output_format not in ("json", "text", "both"):
        problems.append(f"logging.output_format '{config.logging.output_format}' is not supported")
    if config.language not in SUPPORTED_LANGUAGES:
        problems.append(f"language '{config.language}' is not supported")
    return problems


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Display verbose result status",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Return status in JSON format",
    )
    parser.add_argument(
        "--config", "-c",
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--language", "-l",
        choices=sorted(SUPPORTED_LANGUAGES),
        help="Output language",
    )


def _add_completion_arguments(parser: argparse.ArgumentParser, dryrun_help: str) -> None:
    parser.add_argument(
        "--complete",
        action="store_true",
        help="Wait for change completion",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        help="Change completion wait timeout in seconds (default: 300)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        help="Seconds between completion polls (default: 5)",
    )
    parser.add_argument(
        "--dryrun",
        action="store_true",
        help=dryrun_help,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="gtm-traffic",
        description="Manage GTM traffic targets and query traffic status",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'update-datacenter' command
    dc_parser = subparsers.add_parser(
        "update-datacenter",
        help="Enable or disable a datacenter in all property references",
    )
    dc_parser.add_argument("domain", help="GTM domain name")
    dc_parser.add_argument(
        "--datacenter",
        action="append",
        help="Datacenter id or nickname. Multiple datacenters may be specified.",
    )
    toggle = dc_parser.add_mutually_exclusive_group()
    toggle.add_argument(
        "--enable",
        action="store_true",
        help="Enable specified datacenter traffic target(s)",
    )
    toggle.add_argument(
        "--disable",
        action="store_true",
        help="Disable specified datacenter traffic target(s)",
    )
    _add_common_arguments(dc_parser)
    _add_completion_arguments(dc_parser, "Return planned datacenter traffic target change(s)")
    dc_parser.set_defaults(func=cmd_update_datacenter)

    # 'update-property' command
    prop_parser = subparsers.add_parser(
        "update-property",
        help="Update traffic targets or liveness tests of a property",
    )
    prop_parser.add_argument("domain", help="GTM domain name")
    prop_parser.add_argument("property", help="Property name")
    prop_parser.add_argument(
        "--datacenter",
        action="append",
        help="Datacenter id or nickname. Multiple datacenters may be specified.",
    )
    toggle = prop_parser.add_mutually_exclusive_group()
    toggle.add_argument(
        "--enable",
        action="store_true",
        help="Enable specified datacenter traffic target(s)",
    )
    toggle.add_argument(
        "--disable",
        action="store_true",
        help="Disable specified datacenter traffic target(s)",
    )
    prop_parser.add_argument(
        "--weight",
        type=float,
        help="Apply weight to the specified datacenter traffic target",
    )
    prop_parser.add_argument(
        "--server",
        action="append",
        help="Server for the specified datacenter traffic target. Multiple servers may be specified.",
    )
    prop_parser.add_argument(
        "--target",
        action="append",
        help="Traffic target as JSON, e.g. '{\"datacenterId\": 3131, \"weight\": 50}'. "
             "Adds the target if the property does not reference it.",
    )
    prop_parser.add_argument(
        "--liveness-test",
        action="append",
        help="Liveness test name. Multiple liveness tests may be specified.",
    )
    prop_parser.add_argument(
        "--liveness-enabled",
        metavar="true|false",
        help="Enable or disable the specified liveness test(s)",
    )
    _add_common_arguments(prop_parser)
    _add_completion_arguments(prop_parser, "Return planned property change(s)")
    prop_parser.set_defaults(func=cmd_update_property)

    # 'query-status' command
    query_parser = subparsers.add_parser(
        "query-status",
        help="Report traffic status of a property or datacenters",
    )
    query_parser.add_argument("domain", help="GTM domain name")
    selector = query_parser.add_mutually_exclusive_group(required=True)
    selector.add_argument(
        "--property",
        help="Report status of specified property",
    )
    selector.add_argument(
        "--datacenter",
        action="append",
        help="Report status of specified datacenter by id or nickname",
    )
    _add_common_arguments(query_parser)
    query_parser.set_defaults(func=cmd_query_status)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.add_argument(
        "--language", "-l",
        choices=sorted(SUPPORTED_LANGUAGES),
        help="Default language for new configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
