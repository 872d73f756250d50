"""Command-line entry point."""
import sys
import json
import argparse
import mimetypes
from pathlib import Path
from typing import Optional

from grantaudit.budget.models import AccountType, AuditMode, AuditReport
from grantaudit.budget.policy import BudgetPolicy
from grantaudit.config.manager import Config, ConfigManager
from grantaudit.config.settings import AppSettings, get_settings
from grantaudit.orchestrator.processor import build_pipeline
from grantaudit.utils.exceptions import (
    ConfigError,
    ExtractionFailure,
    GrantAuditError,
    NoTransactionsExtracted,
    ValidationError,
)
from grantaudit.utils.logger import get_logger, set_log_level

logger = get_logger()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNREADABLE = 2
EXIT_NO_TRANSACTIONS = 3


def _load_and_validate_config() -> Config:
    """Load credentials; exits with a message when they are missing or invalid."""
    config_manager = ConfigManager()
    config = config_manager.load_config()

    if not config:
        logger.critical("No configuration found. Set GEMINI_API_KEY or create ~/.grantaudit/config.json")
        sys.exit(EXIT_ERROR)

    is_valid, message = config_manager.validate_config(config)
    if not is_valid:
        logger.critical(f"Invalid configuration: {message}")
        sys.exit(EXIT_ERROR)

    set_log_level(config.log_level)
    return config


def _load_settings(config: Optional[Config] = None) -> AppSettings:
    if config and config.settings_path:
        return AppSettings.load(Path(config.settings_path))
    return get_settings()


def _write_report(report: AuditReport, output: Optional[str]) -> None:
    payload = json.dumps(report.to_dict(), ensure_ascii=False, indent=2)
    if output:
        Path(output).write_text(payload, encoding="utf-8")
        logger.info(f"Report written to {output}")
    else:
        print(payload)


def analyze_command(args: argparse.Namespace) -> int:
    """Run the audit pipeline on a file or on inline text."""
    config = _load_and_validate_config()
    settings = _load_settings(config)
    pipeline = build_pipeline(settings, config.gemini_api_key)

    try:
        if args.text is not None:
            report = pipeline.analyze_text(args.text, args.account_type, args.mode)
        else:
            path = Path(args.file)
            if not path.exists():
                logger.error(f"File not found: {path}")
                return EXIT_ERROR
            mime_type = args.mime_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            report = pipeline.analyze_document(path.read_bytes(), mime_type, args.account_type, args.mode)
    except ExtractionFailure as e:
        logger.error(f"Document unreadable: {e}")
        return EXIT_UNREADABLE
    except NoTransactionsExtracted as e:
        logger.error(str(e))
        return EXIT_NO_TRANSACTIONS

    for warning in report.warnings:
        logger.warning(warning)
    _write_report(report, args.output)
    return EXIT_OK


def show_policy_command(args: argparse.Namespace) -> int:
    """Print the cap table for an account type."""
    settings = _load_settings()
    policy = BudgetPolicy.load(settings.policy_file)
    profile = policy.profile_for(args.account_type)

    print(f"\n{profile.account_type.value} account, financial year {policy.financial_year}")
    print(f"{'Tranche':<12} {'Total grant':>14} {'Non-recurring':>14} {'Recurring':>14}")
    print("-" * 57)
    for caps in profile.tranches:
        print(
            f"{caps.tranche.value:<12} {caps.total_grant:>14,.2f} "
            f"{caps.non_recurring_cap:>14,.2f} {caps.recurring_cap:>14,.2f}"
        )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Grant account statement audit")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Audit a bank statement")
    source = analyze.add_mutually_exclusive_group(required=True)
    source.add_argument("file", nargs="?", help="Statement PDF or image")
    source.add_argument("--text", help="Statement text (or itemized rows) instead of a file")
    analyze.add_argument("--mime-type", help="Override the MIME type guessed from the file name")
    analyze.add_argument(
        "--account-type",
        choices=[account.value for account in AccountType],
        default=AccountType.SAVINGS.value
    )
    analyze.add_argument(
        "--mode",
        choices=[mode.value for mode in AuditMode],
        default=AuditMode.SCHOOL.value,
        help="Tone of observations"
    )
    analyze.add_argument("--output", help="Write the JSON report to this file instead of stdout")
    analyze.set_defaults(handler=analyze_command)

    policy = subparsers.add_parser("show-policy", help="Print the tranche cap table")
    policy.add_argument(
        "--account-type",
        choices=[account.value for account in AccountType],
        default=AccountType.SAVINGS.value
    )
    policy.set_defaults(handler=show_policy_command)

    return parser


def main(argv=None) -> None:
    """Main entry point for the grantaudit CLI."""
    args = build_parser().parse_args(argv)

    try:
        exit_code = args.handler(args)
    except (ConfigError, ValidationError) as e:
        logger.critical(str(e))
        exit_code = EXIT_ERROR
    except GrantAuditError as e:
        logger.critical(f"Fatal error: {e}")
        exit_code = EXIT_ERROR
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        exit_code = EXIT_ERROR

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
