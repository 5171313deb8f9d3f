"""Properties command - list the fields rules can test, with their operators."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..vault.loader import load_vault
from ..vault.properties import operators_for, scan_properties


def run_properties(vault_path: Path, *, output_json: bool = False) -> int:
    vault = load_vault(vault_path)
    properties = scan_properties(vault)

    if output_json:
        data = [{"key": p.key, "type": p.type, "operators": operators_for(p.type)} for p in properties]
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    console = Console()
    table = Table(title=f"Properties ({len(vault.notes)} notes)")
    table.add_column("key", style="cyan", no_wrap=True)
    table.add_column("type", style="magenta")
    table.add_column("operators", style="dim")

    for prop in properties:
        table.add_row(prop.key, prop.type, ", ".join(operators_for(prop.type)))

    console.print(table)
    return 0
