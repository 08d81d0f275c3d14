#!/usr/bin/env python3
"""FieldFlow Mapper - Entry point."""
import sys
import os
import logging

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import click
from colorama import Fore, Style, init

from config import app_config
from fieldflow import __version__
from fieldflow.cli.session import MappingSessionCLI
from fieldflow.parser.message_filter import MESSAGE_TYPES

# Initialize colorama
init(autoreset=True)

logging.basicConfig(
    level=getattr(logging, app_config.log_level.upper(), logging.WARNING),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def print_banner():
    """Print application banner."""
    click.echo(f"{Fore.CYAN}{'=' * 44}")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}FieldFlow Mapper{Fore.CYAN}                     ║")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}Message Structure Mapping Tool{Fore.CYAN}       ║")
    click.echo(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    click.echo()


message_type_option = click.option(
    "--message-type",
    type=click.Choice(MESSAGE_TYPES),
    default=None,
    help="Keep only the request, response or fault part of XML structures",
)


@click.group()
@click.version_option(version=__version__)
def cli():
    """FieldFlow Mapper - Map fields between message structures."""
    pass


@cli.command()
@click.argument("file", type=click.Path(exists=True))
@message_type_option
def tree(file, message_type):
    """Print the field tree of a structure."""
    try:
        MappingSessionCLI().show_tree(file, message_type)
    except ValueError as e:
        click.echo(f"{Fore.RED}Error: {e}")
        sys.exit(1)


@cli.command(name="filter")
@click.argument("file", type=click.Path(exists=True))
@click.option(
    "--message-type",
    type=click.Choice(MESSAGE_TYPES),
    required=True,
    help="Message kind to keep",
)
def filter_command(file, message_type):
    """Print the XML of one message kind."""
    MappingSessionCLI().show_filtered(file, message_type)


@cli.command()
@click.argument("source", type=click.Path(exists=True))
@click.argument("target", type=click.Path(exists=True))
@message_type_option
@click.option("--select-source", help="Path of the selected source node")
@click.option("--select-target", help="Path of the selected target node")
@click.option("--output", type=click.Path(), help="Write mappings to this JSON file")
@click.option("--name", help="Name stored in the export metadata")
def automap(source, target, message_type, select_source, select_target, output, name):
    """Propose mappings by matching field names."""
    print_banner()

    try:
        MappingSessionCLI().auto_map(
            source,
            target,
            message_type=message_type,
            select_source=select_source,
            select_target=select_target,
            output=output,
            name=name,
        )
    except ValueError as e:
        click.echo(f"{Fore.RED}Error: {e}")
        sys.exit(1)


@cli.command()
@click.argument("source", type=click.Path(exists=True))
@click.argument("target", type=click.Path(exists=True))
@click.argument("mappings", type=click.Path(exists=True))
def validate(source, target, mappings):
    """Validate exported mappings against both structures."""
    print_banner()

    try:
        errors = MappingSessionCLI().validate(source, target, mappings)
    except ValueError as e:
        click.echo(f"{Fore.RED}Error: {e}")
        sys.exit(1)

    if errors:
        sys.exit(1)


@cli.command()
@click.argument("source", type=click.Path(exists=True))
@click.argument("target", type=click.Path(exists=True))
@click.argument("mappings", type=click.Path(exists=True))
@click.argument("input_file", type=click.Path(exists=True))
@message_type_option
def test(source, target, mappings, input_file, message_type):
    """Run mappings against a sample input on the test service."""
    print_banner()

    try:
        result = MappingSessionCLI().test(source, target, mappings, input_file, message_type)
    except ValueError as e:
        click.echo(f"{Fore.RED}Error: {e}")
        sys.exit(1)

    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    cli()
