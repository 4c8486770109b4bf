#!/usr/bin/env python3
"""
TreeIndex Interactive Shell (Command-line shell for a directory)

A command-line interface for adding, removing and searching entities in a
dual-index directory, with commands to inspect the underlying trees.
"""

import sys
import os
import logging
import argparse
import signal
from typing import Any, Callable, List, Optional

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config.settings import get_config
from treeindex import DualIndexDirectory, Entity, FuzzyMatcher, TreeIndexError
from treeindex.loader import seed_directory

logger = logging.getLogger(__name__)


class ShellExit(Exception):
    """Raised by the quit command to leave the main loop"""


class DirectoryShell:
    """Interactive TreeIndex Command Shell"""

    def __init__(self, directory: Optional[DualIndexDirectory] = None, max_distance: int = 2,
                 make_entity: Callable[[int, str], Any] = Entity):
        self.directory = directory if directory is not None else DualIndexDirectory()
        self.make_entity = make_entity
        self.max_distance = max_distance
        self.history: List[str] = []
        self.debug_mode = False

        # Directory operations
        self.operations = {
            'add': self.cmd_add,
            'remove': self.cmd_remove,
            'rm': self.cmd_remove,
            'find': self.cmd_find,
            'name': self.cmd_name,
            'prefix': self.cmd_prefix,
            'range': self.cmd_range,
            'fuzzy': self.cmd_fuzzy,
            'list': self.cmd_list,
        }

        # Shell commands (dot-prefixed)
        self.commands = {
            'help': self.show_help,
            'h': self.show_help,
            '?': self.show_help,
            'quit': self.quit_shell,
            'exit': self.quit_shell,
            'q': self.quit_shell,
            'history': self.show_history,
            'stats': self.show_stats,
            'tree': self.show_tree,
            'check': self.check,
            'debug': self.toggle_debug,
        }

    def parse_command(self, input_line: str) -> tuple:
        """Parse input line into (kind, name, args)"""
        input_line = input_line.strip()

        if input_line == "":
            return ('empty', "", "")
        if input_line.startswith('.'):
            parts = input_line[1:].split(' ', 1)
            return ('command', parts[0].lower(), parts[1].strip() if len(parts) > 1 else "")

        parts = input_line.split(' ', 1)
        return ('operation', parts[0].lower(), parts[1].strip() if len(parts) > 1 else "")

    def execute(self, input_line: str) -> str:
        """Run one line and return the text to display"""
        kind, name, args = self.parse_command(input_line)
        if kind == 'empty':
            return ""

        self.history.append(input_line.strip())
        table = self.commands if kind == 'command' else self.operations
        handler = table.get(name)
        if handler is None:
            prefix = '.' if kind == 'command' else ''
            return f"Unknown command: {prefix}{name}\nType .help for available commands"

        try:
            return handler(args)
        except ValueError as e:
            return f"Invalid arguments: {e}"
        except TreeIndexError as e:
            return f"Error [{e.code.value}]: {e.message}"

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def _format(self, entities) -> str:
        if not entities:
            return "(no entities)"
        lines = [f"  {self.directory.id_of(e):>6}  {self.directory.name_of(e)}" for e in entities]
        lines.append(f"({len(entities)} entit{'y' if len(entities) == 1 else 'ies'})")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Directory operations
    # ------------------------------------------------------------------

    def cmd_add(self, args: str) -> str:
        """add <id> <name>"""
        parts = args.split(' ', 1)
        if len(parts) != 2 or not parts[1].strip():
            raise ValueError("usage: add <id> <name>")
        entity_id, name = int(parts[0]), parts[1].strip()
        if self.directory.add_entity(self.make_entity(entity_id, name)):
            return f"Added {entity_id} {name}"
        return f"Rejected: id {entity_id} or name '{name}' already exists"

    def cmd_remove(self, args: str) -> str:
        """remove <id> | remove name <name>"""
        if args.startswith('name '):
            target = args[5:].strip()
            removed = self.directory.remove_by_name(target)
        else:
            if not args:
                raise ValueError("usage: remove <id> | remove name <name>")
            target = int(args)
            removed = self.directory.remove_by_id(target)
        return f"Removed {target}" if removed else f"Not found: {target}"

    def cmd_find(self, args: str) -> str:
        """find <id>"""
        entity = self.directory.search_by_id(int(args))
        return self._format([entity] if entity is not None else [])

    def cmd_name(self, args: str) -> str:
        """name <name>"""
        entity = self.directory.search_by_name(args)
        return self._format([entity] if entity is not None else [])

    def cmd_prefix(self, args: str) -> str:
        """prefix [<text>]"""
        return self._format(self.directory.search_by_name_prefix(args))

    def cmd_range(self, args: str) -> str:
        """range <min_id> <max_id>"""
        parts = args.split()
        if len(parts) != 2:
            raise ValueError("usage: range <min_id> <max_id>")
        return self._format(self.directory.get_entities_in_id_range(int(parts[0]), int(parts[1])))

    def cmd_fuzzy(self, args: str) -> str:
        """fuzzy <query> [max_distance], closest matches first"""
        parts = args.split()
        if not parts:
            raise ValueError("usage: fuzzy <query> [max_distance]")
        max_distance = int(parts[1]) if len(parts) > 1 else self.max_distance
        entities = self.directory.fuzzy_name_search(parts[0], max_distance)
        if not entities:
            return "(no entities)"
        by_name = {self.directory.name_of(e): e for e in entities}
        ranked = FuzzyMatcher(parts[0], max_distance).rank(by_name)
        lines = [
            f"  {self.directory.id_of(by_name[name]):>6}  {name}  (distance {distance})"
            for name, distance in ranked
        ]
        return "\n".join(lines)

    def cmd_list(self, args: str) -> str:
        """list [id|name]"""
        by_id = args.strip().lower() != 'name'
        return self._format(self.directory.get_all_sorted(by_id=by_id))

    # ------------------------------------------------------------------
    # Shell commands
    # ------------------------------------------------------------------

    def show_help(self, args: str = "") -> str:
        return """
TreeIndex Shell Help
====================

Directory operations:
  add <id> <name>           Add an entity
  remove <id>               Remove by id
  remove name <name>        Remove by name
  find <id>                 Look up by id
  name <name>               Look up by name
  prefix [<text>]           Names starting with text
  range <min_id> <max_id>   Ids in [min_id, max_id]
  fuzzy <query> [distance]  Names within an edit distance
  list [id|name]            Every entity, sorted

Shell commands:
  .help                     Show this help
  .stats                    Index statistics
  .tree [id|name]           Draw an index tree
  .check                    Verify index invariants
  .history                  Show command history
  .debug                    Toggle debug mode
  .quit                     Exit the shell
""".strip()

    def show_history(self, args: str = "") -> str:
        if not self.history:
            return "No command history available"
        return "\n".join(f"{i:3d}. {line}" for i, line in enumerate(self.history, 1))

    def show_stats(self, args: str = "") -> str:
        stats = self.directory.stats()
        lines = [
            f"Entities:   {stats['entities']}",
            f"Consistent: {stats['consistent']}",
        ]
        for label in ('id_index', 'name_index'):
            index = stats[label]
            lines.append(
                f"{label}: size={index['size']} height={index['height']} "
                f"avg_depth={index['average_depth']} valid={index['valid']}"
            )
        return "\n".join(lines)

    def show_tree(self, args: str = "") -> str:
        index = self.directory.by_name if args.strip().lower() == 'name' else self.directory.by_id
        return index.render()

    def check(self, args: str = "") -> str:
        self.directory.by_id.check_invariants()
        self.directory.by_name.check_invariants()
        self.directory.check_consistency()
        return "OK: both indices are valid AVL trees and agree"

    def toggle_debug(self, args: str = "") -> str:
        self.debug_mode = not self.debug_mode
        logging.getLogger('treeindex').setLevel(logging.DEBUG if self.debug_mode else logging.INFO)
        return f"Debug mode: {'ON' if self.debug_mode else 'OFF'}"

    def quit_shell(self, args: str = "") -> str:
        raise ShellExit()

    def signal_handler(self, signum, frame):
        print("\n\nTreeIndex shell interrupted. Use .quit to exit gracefully.")

    def run(self):
        """Main shell loop"""
        signal.signal(signal.SIGINT, self.signal_handler)
        print("TreeIndex shell. Type .help for commands.")

        while True:
            try:
                output = self.execute(input("treeindex> "))
                if output:
                    print(output)
            except ShellExit:
                print("Goodbye!")
                break
            except EOFError:
                print("\nGoodbye!")
                break


def main(argv: Optional[List[str]] = None):
    """Entry point for the TreeIndex shell"""
    config = get_config()

    parser = argparse.ArgumentParser(description="TreeIndex directory shell")
    parser.add_argument("--seed", type=str, help="JSON seed file to load at start-up")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if (args.debug or config.debug_mode) else getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    shell = DirectoryShell(max_distance=config.default_max_distance)
    seed = args.seed or config.seed_file
    if seed:
        added = seed_directory(shell.directory, seed)
        print(f"Loaded {added} entities from {seed}")

    shell.run()


if __name__ == "__main__":
    main()
