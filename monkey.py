import asyncio
import sys
from pathlib import Path

from monkey.monkey_errors import ParseError
from monkey.monkey_interpreter import apply_recursion_limit
from monkey.monkey_parser import parse_source
from monkey.monkey_printer import Printer
from monkey.monkey_runtime import ScriptRunner
from monkey.monkey_serialize import dump_ast

# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)

def print_side_effects(result):
    for effect in result.side_effects:
        if effect.get('topics') == ['stdout']:
            print(effect.get('message', ''))

def read_source(file_path: str) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)

async def run_script_file(file_path: str):
    """Run a Monkey script file non-interactively and exit with appropriate status."""
    runner = ScriptRunner()
    printer = Printer()
    result = runner.handle_script(read_source(file_path))
    print_side_effects(result)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)
    print(printer.pformat(result.value))

def dump_script_ast(file_path: str):
    """Print the parsed program of a script file as YAML."""
    try:
        program = parse_source(read_source(file_path))
    except ParseError as e:
        print(f"ParseError: {type(e).__name__}: {e}", file=sys.stderr)
        raise SystemExit(1)
    sys.stdout.write(dump_ast(program, fmt='yaml'))

async def main():
    """Run a script file when provided, otherwise start the interactive REPL."""
    apply_recursion_limit()
    args = sys.argv[1:]
    if args:
        if args[0] == "--ast" and len(args) > 1:
            dump_script_ast(args[1])
            return
        # Treat argv[1] as a script file when it's not a flag
        if not args[0].startswith("-"):
            await run_script_file(args[0])
            return

    print("Monkey REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    # Setup: one runner, so let-bindings persist across lines
    runner = ScriptRunner()
    printer = Printer()

    # REPL Loop
    while True:
        try:
            raw = await ainput(">> ")
            if raw == "":
                raise EOFError
            line = raw.strip()

            if not line:
                continue
            if line == "exit":
                break

            result = runner.handle_script(line)

            print_side_effects(result)
            if result.status == 'error':
                print(result.format_error(), file=sys.stderr)
                continue

            print(printer.pformat(result.value))

        except EOFError:
            print("\nExiting.")
            break

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")
