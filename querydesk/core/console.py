"""Interactive terminal console for running SQL statements."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from querydesk.core.config import MODES, load_settings
from querydesk.core.formatting import PAGE_SIZES, export_csv, paginate, render_table
from querydesk.core.results import QueryResult
from querydesk.core.service import QueryService, build_service

LOGGER = logging.getLogger(__name__)

PROMPT = "sql> "
PROMPT_CONT = "...> "

_exit_commands = {"/exit", "exit", "quit", ":q"}

_HELP_TEXT = """Commands:
  /tables            list sample tables and their columns
  /samples           show example statements
  /mode <mock|real>  switch execution mode
  /page <n>          show page n of the last result
  /export <path>     write the last result to a CSV file
  /exit              leave the console"""


def is_complete_statement(buffer: str) -> bool:
    """Return True once *buffer* contains a ';' outside single-quoted literals."""

    in_string = False
    for char in buffer:
        if char == "'":
            in_string = not in_string
        elif char == ";" and not in_string:
            return True
    return False


@dataclass
class SQLConsole:
    """Simple terminal SQL editor built on top of the query service."""

    service: QueryService
    input_func: Callable[[str], str] = field(default=input)
    output_func: Callable[[str], None] = field(default=print)
    page_size: int = 20
    _last_result: QueryResult | None = field(default=None, init=False)

    def start(self) -> None:
        """Launch an interactive console session."""

        self.output_func(
            f"Connected in {self.service.default_mode} mode. End statements with ';'."
            " Type '/help' for commands and '/exit' to leave."
        )
        with asyncio.Runner() as runner:
            try:
                self._loop(runner)
            finally:
                runner.run(self.service.close())

    def _loop(self, runner: asyncio.Runner) -> None:
        buffer: list[str] = []
        while True:
            try:
                raw = self.input_func(PROMPT_CONT if buffer else PROMPT)
            except EOFError:
                self.output_func("\nSession ended.")
                break

            line = raw.strip()
            if not buffer:
                if not line:
                    continue
                if line.lower() in _exit_commands:
                    self.output_func("Session ended.")
                    break
                if line.startswith("/"):
                    self._handle_command(line)
                    continue

            if line:
                buffer.append(raw)
            statement = "\n".join(buffer).strip()
            if not statement or (line and not is_complete_statement(statement)):
                continue
            buffer.clear()

            try:
                result = runner.run(self.service.execute(statement))
            except Exception as exc:  # pragma: no cover - keep the session alive
                LOGGER.exception("Console execution failed")
                self.output_func(f"Error: {exc}")
                continue

            self._last_result = result
            self._render_result(result, page=1)

    def _handle_command(self, command: str) -> None:
        name, _, argument = command.partition(" ")
        argument = argument.strip()
        name = name.lower()

        if name == "/help":
            self.output_func(_HELP_TEXT)
        elif name == "/tables":
            for table, details in self.service.schema().items():
                columns = ", ".join(details.get("columns", []))
                self.output_func(f"  - {table}: {columns}")
        elif name == "/samples":
            for sample in self.service.sample_queries():
                self.output_func(f"  - {sample['title']}: {sample['sql']}")
        elif name == "/mode":
            self._switch_mode(argument)
        elif name == "/page":
            self._show_page(argument)
        elif name == "/export":
            self._export(argument)
        else:
            self.output_func(f"Unknown command '{name}'. Type '/help' for a list of commands.")

    def _switch_mode(self, argument: str) -> None:
        mode = argument.lower()
        if mode not in MODES:
            self.output_func("Usage: /mode <mock|real>")
            return
        self.service.default_mode = mode
        self.output_func(f"Execution mode set to {mode}.")

    def _show_page(self, argument: str) -> None:
        if self._last_result is None or not self._last_result.data:
            self.output_func("No result rows to page through.")
            return
        try:
            page = int(argument)
        except ValueError:
            self.output_func("Usage: /page <number>")
            return
        self._render_result(self._last_result, page=page)

    def _export(self, argument: str) -> None:
        if not argument:
            self.output_func("Usage: /export <path>")
            return
        if self._last_result is None or not self._last_result.data:
            self.output_func("No result rows to export.")
            return
        target = export_csv(self._last_result.data, Path(argument))
        self.output_func(f"Exported {self._last_result.row_count} rows to {target}.")

    def _render_result(self, result: QueryResult, *, page: int) -> None:
        if not result.success:
            self.output_func(f"Error: {result.error}")
            return

        if result.data:
            current = paginate(result.data, page=page, page_size=self.page_size)
            self.output_func(render_table(current.rows, start_index=current.start_index))
            if current.total_pages > 1:
                self.output_func(
                    f"Page {current.page} of {current.total_pages} ({current.total_rows} rows)."
                    " Use '/page <n>' to navigate."
                )
        elif result.rows_affected:
            self.output_func(f"Rows affected: {result.rows_affected}")

        if result.message:
            self.output_func(result.message)


def _configure_logging(debug: bool) -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        if debug:
            root_logger.setLevel(logging.DEBUG)
        return
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive SQL console")
    parser.add_argument("--config", default="configs/dev.yaml", help="Path to the YAML config file")
    parser.add_argument("--mode", choices=MODES, help="Override the configured execution mode")
    parser.add_argument(
        "--page-size",
        type=int,
        choices=PAGE_SIZES,
        default=PAGE_SIZES[0],
        help="Rows shown per result page",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()

    _configure_logging(debug=args.debug)
    settings = load_settings(args.config)
    if args.mode:
        settings.mode = args.mode
    service = build_service(settings)
    SQLConsole(service=service, page_size=args.page_size).start()


if __name__ == "__main__":
    main()
