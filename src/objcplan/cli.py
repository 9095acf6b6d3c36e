"""
Command-line interface for objcplan.

This module provides the `objcplan` CLI tool for planning Objective-C library
build actions from a workspace.ini file.
"""

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from objcplan import __version__
from objcplan.build.make_variables import MakeVariableError
from objcplan.build.orchestrator import AnalysisOrchestrator, DependencyResolutionError
from objcplan.build.validation import DeclarationError, check_resources_allowed, validate
from objcplan.cli_utils import ConfigurationDetector, ErrorFormatter, PathValidator, setup_logging
from objcplan.config import ConfigurationError, WorkspaceConfig, WorkspaceConfigError

ANALYSIS_ERRORS = (
    WorkspaceConfigError,
    ConfigurationError,
    DeclarationError,
    DependencyResolutionError,
    MakeVariableError,
)


@dataclass
class PlanArgs:
    """Arguments for the plan command."""

    workspace: Path
    config: Optional[str] = None
    targets: List[str] = field(default_factory=list)
    jobs: Optional[int] = None
    verbose: bool = False


@dataclass
class ValidateArgs:
    """Arguments for the validate command."""

    workspace: Path
    config: Optional[str] = None
    verbose: bool = False


@dataclass
class ProvidersArgs:
    """Arguments for the providers command."""

    workspace: Path
    target: str
    config: Optional[str] = None
    verbose: bool = False


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2))


def plan_command(args: PlanArgs) -> None:
    """Plan build actions and print them as JSON.

    Examples:
        objcplan plan workspace.ini                     # All targets, default config
        objcplan plan workspace.ini -c ios_device      # Named configuration
        objcplan plan workspace.ini -t //objc:lib      # One target and its deps
        objcplan plan workspace.ini --jobs 1           # Sequential analysis
    """
    try:
        workspace = WorkspaceConfig(args.workspace)
        config_name = ConfigurationDetector.detect_configuration(workspace, args.config)
        configuration = workspace.get_configuration(config_name)
        orchestrator = AnalysisOrchestrator(workspace.get_declarations(), max_workers=args.jobs)

        if args.targets:
            analyses = [orchestrator.analyze(target, configuration) for target in args.targets]
        else:
            analyses = orchestrator.analyze_all(configuration)

        _print_json({
            "configuration": config_name,
            "targets": [analysis.to_dict() for analysis in analyses],
        })
        sys.exit(0)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except ANALYSIS_ERRORS as e:
        ErrorFormatter.handle_analysis_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def validate_command(args: ValidateArgs) -> None:
    """Validate every declaration and report errors and warnings.

    Examples:
        objcplan validate workspace.ini
        objcplan validate workspace.ini -c ios_sim     # Also configuration-dependent checks
    """
    try:
        workspace = WorkspaceConfig(args.workspace)
        configuration = workspace.get_configuration(args.config) if args.config else None

        error_count = 0
        warning_count = 0
        for declaration in workspace.get_declarations():
            result = validate(declaration)
            if configuration is not None:
                result = result.merged(
                    check_resources_allowed(declaration, configuration.disable_objc_library_resources)
                )
            for error in result.errors:
                ErrorFormatter.print_error("Declaration error", str(error))
            for warning in result.warnings:
                ErrorFormatter.print_warning(str(warning))
            error_count += len(result.errors)
            warning_count += len(result.warnings)

        if error_count:
            print(f"{error_count} error(s), {warning_count} warning(s)")
            sys.exit(1)
        ErrorFormatter.print_success(f"All declarations valid ({warning_count} warning(s))")
        sys.exit(0)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except ANALYSIS_ERRORS as e:
        ErrorFormatter.handle_analysis_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def providers_command(args: ProvidersArgs) -> None:
    """Print the merged provider set of one target as JSON.

    Examples:
        objcplan providers workspace.ini -t //objc:lib
    """
    try:
        workspace = WorkspaceConfig(args.workspace)
        config_name = ConfigurationDetector.detect_configuration(workspace, args.config)
        configuration = workspace.get_configuration(config_name)
        orchestrator = AnalysisOrchestrator(workspace.get_declarations())
        analysis = orchestrator.analyze(args.target, configuration)

        _print_json({"label": str(analysis.label), "providers": analysis.providers.to_dict()})
        sys.exit(0)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except ANALYSIS_ERRORS as e:
        ErrorFormatter.handle_analysis_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def main() -> None:
    """objcplan - Objective-C library build action planner."""
    parser = argparse.ArgumentParser(
        prog="objcplan",
        description="objcplan - Objective-C library build action planner",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"objcplan {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Plan command
    plan_parser = subparsers.add_parser(
        "plan",
        help="Plan compile, module map and archive actions",
    )
    plan_parser.add_argument(
        "workspace",
        type=Path,
        help="Path to workspace.ini",
    )
    plan_parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Configuration name (default: from [workspace] or first [config:...])",
    )
    plan_parser.add_argument(
        "-t",
        "--target",
        dest="targets",
        action="append",
        default=[],
        help="Target label to plan (repeatable, default: all targets)",
    )
    plan_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Number of analysis threads (default: physical cores)",
    )
    plan_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate every target declaration",
    )
    validate_parser.add_argument(
        "workspace",
        type=Path,
        help="Path to workspace.ini",
    )
    validate_parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Configuration for configuration-dependent checks",
    )
    validate_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    # Providers command
    providers_parser = subparsers.add_parser(
        "providers",
        help="Print the merged provider set of a target",
    )
    providers_parser.add_argument(
        "workspace",
        type=Path,
        help="Path to workspace.ini",
    )
    providers_parser.add_argument(
        "-t",
        "--target",
        required=True,
        help="Target label",
    )
    providers_parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Configuration name",
    )
    providers_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    # Parse arguments
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    PathValidator.validate_workspace_file(parsed_args.workspace)
    setup_logging(parsed_args.verbose)

    # Execute command
    if parsed_args.command == "plan":
        plan_command(PlanArgs(
            workspace=parsed_args.workspace,
            config=parsed_args.config,
            targets=parsed_args.targets,
            jobs=parsed_args.jobs,
            verbose=parsed_args.verbose,
        ))
    elif parsed_args.command == "validate":
        validate_command(ValidateArgs(
            workspace=parsed_args.workspace,
            config=parsed_args.config,
            verbose=parsed_args.verbose,
        ))
    elif parsed_args.command == "providers":
        providers_command(ProvidersArgs(
            workspace=parsed_args.workspace,
            target=parsed_args.target,
            config=parsed_args.config,
            verbose=parsed_args.verbose,
        ))


if __name__ == "__main__":
    main()
