#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""apps/cli/commands/catalog.py

CLI-oriented catalog front-end: search / item / tree / related.

Notes
- This module is intentionally a thin UI layer.
- Resolution, caching and tree expansion live in `tataru.engine`.
"""

from __future__ import annotations

from typing import Dict, List

from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from apps.cli.cli_common import console, job_label
from tataru.crafting import base_materials, collect_ids
from tataru.engine import TataruEngine
from tataru.models import Item, MaterialNode


def _trade_mark(it: Item) -> str:
    return "[green]可交易[/green]" if it.tradeable else "[dim]不可交易[/dim]"


async def _names_for(engine: TataruEngine, ids: List[int]) -> Dict[int, str]:
    items = await engine.get_items(ids, hydrate=False)
    return {it.id: it.name for it in items}


async def cmd_search(engine: TataruEngine, text: str, fuzzy: bool = False) -> int:
    outcome = await engine.search_items(text, fuzzy_only=fuzzy)
    if outcome.converted:
        console.print(f"[dim]已轉換搜尋: {outcome.original_text} → {outcome.converted_text}[/dim]")
    if outcome.searched_simplified:
        console.print("[dim]已使用簡體名稱對照[/dim]")
    if not outcome.results:
        console.print(f"[red]未找到物品: {text}[/red]")
        return 1

    table = Table(title=f"搜尋結果 (共 {len(outcome.results)})", box=None, show_header=True, header_style="bold dim")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("名稱")
    table.add_column("交易")
    for it in outcome.results:
        table.add_row(str(it.id), it.name, _trade_mark(it))
    console.print(table)
    return 0


async def cmd_item(engine: TataruEngine, item_id: int) -> int:
    it = await engine.get_item_by_id(item_id)
    if it is None:
        console.print(f"[red]未找到物品 ID: {item_id}[/red]")
        return 1
    lines = [
        f"[bold]ID[/bold]: {it.id}",
        f"[bold]品級[/bold]: {it.item_level if it.item_level is not None else '-'}",
        f"[bold]交易[/bold]: {_trade_mark(it)}",
        f"[bold]HQ[/bold]: {'可' if it.can_be_hq else '否'}",
    ]
    if it.description:
        lines.append("")
        lines.append(it.description)
    console.print(Panel("\n".join(lines), title=f"📦 {it.name}", border_style="blue"))
    return 0


def _node_label(node: MaterialNode, names: Dict[int, str]) -> str:
    name = names.get(node.item_id, f"#{node.item_id}")
    label = f"{name} [cyan]x{node.quantity}[/cyan]"
    if node.recipe_id is not None:
        label += f" [dim]({job_label(node.job)} Lv{node.level or '-'}, 產出 {node.yields}, 製作 {node.crafts_needed} 次)[/dim]"
    if node.is_cyclic:
        label += " [red]↻ 循環[/red]"
    if node.max_depth_reached:
        label += " [yellow]… 已達最大深度[/yellow]"
    return label


def _add_children(branch: Tree, node: MaterialNode, names: Dict[int, str]) -> None:
    for child in node.children:
        _add_children(branch.add(_node_label(child, names)), child, names)


async def cmd_tree(engine: TataruEngine, item_id: int, quantity: int = 1, with_crystals: bool = False) -> int:
    root = await engine.build_crafting_tree(item_id, quantity, exclude_crystals=not with_crystals)
    names = await _names_for(engine, collect_ids(root))
    if root.is_base_material:
        console.print(f"[yellow]{names.get(item_id, item_id)} 沒有製作配方 (基礎素材)[/yellow]")
        return 0

    tree = Tree(f"🧪 [bold green]{_node_label(root, names)}[/bold green]")
    _add_children(tree, root, names)
    console.print(tree)

    table = Table(title="基礎素材合計", box=None, show_header=True, header_style="bold dim")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("名稱")
    table.add_column("數量", justify="right")
    for iid, qty in sorted(base_materials(root).items()):
        table.add_row(str(iid), names.get(iid, "-"), str(qty))
    console.print(table)
    return 0


async def cmd_related(engine: TataruEngine, item_id: int) -> int:
    ids = await engine.find_related_items(item_id)
    if not ids:
        console.print(f"[yellow]沒有配方使用物品 {item_id}[/yellow]")
        return 0
    names = await _names_for(engine, ids)
    table = Table(title=f"使用此素材的配方產物 (共 {len(ids)})", box=None, show_header=True, header_style="bold dim")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("名稱")
    for iid in ids:
        table.add_row(str(iid), names.get(iid, "-"))
    console.print(table)
    return 0
