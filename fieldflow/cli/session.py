"""Terminal front end for mapping sessions."""
from pathlib import Path
from typing import List, Optional

import click
from colorama import Fore, Style

from config import AppConfig, app_config
from fieldflow.api.test_client import TestMappingClient
from fieldflow.exporter.json_exporter import MappingExporter, load_mappings
from fieldflow.mapper.auto_mapper import AutoMapper, AutoMapStatus
from fieldflow.mapper.mapping_set import MappingSet
from fieldflow.parser.message_filter import filter_xml_by_message_type
from fieldflow.parser.parser_factory import StructureParserFactory
from fieldflow.schema.models import FieldNode
from fieldflow.schema.tree import find_by_path
from fieldflow.validator.mapping_validator import MappingValidator


class MappingSessionCLI:
    """Runs the mapping operations for one pair of structures and prints the results."""

    def __init__(self, config: Optional[AppConfig] = None):
        """Initialize CLI."""
        self.config = config or app_config
        self.client = TestMappingClient(self.config.test_service)
        self.exporter = MappingExporter()
        self.validator = MappingValidator()
        self.auto_mapper = AutoMapper()

    def print_header(self, title: str):
        """Print a section header."""
        click.echo(f"\n{Fore.CYAN}{'━' * 45}")
        click.echo(f"{Fore.CYAN}{title}")
        click.echo(f"{Fore.CYAN}{'━' * 45}{Style.RESET_ALL}\n")

    def load_structures(self, source: str, target: str, message_type: Optional[str] = None):
        """Parse source and target structure files."""
        source_tree = StructureParserFactory.parse_file(source, message_type, id_prefix="src")
        target_tree = StructureParserFactory.parse_file(target, message_type, id_prefix="tgt")
        return source_tree, target_tree

    def print_tree(self, nodes: List[FieldNode], depth: int = 0):
        for node in nodes:
            color = Fore.CYAN if node.children else Fore.WHITE
            click.echo(f"{'  ' * depth}{color}{node.name} {Fore.YELLOW}({node.type}){Style.RESET_ALL}  {node.path}")
            self.print_tree(node.children, depth + 1)

    def show_tree(self, file_path: str, message_type: Optional[str] = None):
        """Print the field tree of a structure file."""
        self.print_header(f"Structure: {Path(file_path).name}")
        tree = StructureParserFactory.parse_file(file_path, message_type)
        self.print_tree(tree)

    def show_filtered(self, file_path: str, message_type: str):
        """Print the XML of one message kind."""
        xml = Path(file_path).read_text(encoding="utf-8")
        click.echo(filter_xml_by_message_type(xml, message_type))

    def auto_map(
        self,
        source: str,
        target: str,
        message_type: Optional[str] = None,
        select_source: Optional[str] = None,
        select_target: Optional[str] = None,
        output: Optional[str] = None,
        name: Optional[str] = None,
    ) -> MappingSet:
        """Run the auto-mapper and export the resulting mappings."""
        self.print_header("Auto-Mapping")
        source_tree, target_tree = self.load_structures(source, target, message_type)

        selected_source = selected_target = None
        if select_source or select_target:
            selected_source = find_by_path(source_tree, select_source or "")
            selected_target = find_by_path(target_tree, select_target or "")
            if selected_source is None or selected_target is None:
                raise click.UsageError("Both --select-source and --select-target must name existing paths")

        result = self.auto_mapper.auto_map(
            source_tree,
            target_tree,
            selected_source=selected_source,
            selected_target=selected_target,
        )

        color = Fore.GREEN if result.status == AutoMapStatus.CREATED else Fore.YELLOW
        click.echo(f"{color}{result.message}")

        mappings = MappingSet().extend(result.mappings)
        for mapping in mappings:
            marker = " [node]" if mapping.is_node_mapping else ""
            click.echo(f"   {mapping.source_paths[0]} → {mapping.target_path}{marker}")

        if output and len(mappings):
            mapping_name = name or f"{Path(source).stem}_to_{Path(target).stem}"
            self.exporter.export(Path(output), mappings, mapping_name, message_type)
            click.echo(f"{Fore.GREEN}✅ Exported to {output}")

        return mappings

    def validate(self, source: str, target: str, mappings_file: str) -> List[str]:
        """Validate exported mappings against both structures."""
        self.print_header("Validation")
        source_tree, target_tree = self.load_structures(source, target)
        mappings = load_mappings(Path(mappings_file))

        errors = self.validator.validate(mappings, source_tree, target_tree)

        if errors:
            click.echo(f"{Fore.RED}❌ {len(errors)} problems found:")
            for error in errors:
                click.echo(f"{Fore.RED}   - {error}")
        else:
            click.echo(f"{Fore.GREEN}✅ {len(mappings)} mappings are valid")

        return errors

    def test(
        self,
        source: str,
        target: str,
        mappings_file: str,
        input_file: str,
        message_type: Optional[str] = None,
    ):
        """Submit mappings and an input message to the test service."""
        self.print_header("Test Mappings")
        mapping_type = message_type or self.config.mapping_type

        click.echo(f"{Fore.CYAN}Connecting to {self.config.test_service.base_url}...")
        result = self.client.test_mapping(
            input_xml=Path(input_file).read_text(encoding="utf-8"),
            mappings=load_mappings(Path(mappings_file)),
            mapping_type=mapping_type,
            source_structure_xml=Path(source).read_text(encoding="utf-8"),
            target_structure_xml=Path(target).read_text(encoding="utf-8"),
        )

        if result.success:
            click.echo(f"{Fore.GREEN}✅ Test succeeded ({result.execution_time_ms} ms)")
            click.echo(result.output_xml or "")
        else:
            click.echo(f"{Fore.RED}❌ Test failed: {result.error}")

        for warning in result.warnings:
            click.echo(f"{Fore.YELLOW}⚠ {warning}")

        return result
