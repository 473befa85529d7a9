# vsmb_designer/cli.py
"""Command line front-end.

USAGE:
    vsmb validate machine.json
    vsmb generate machine.json --format XState --language js -o machine.js
    vsmb tests machine.json
    vsmb mermaid machine.json --markdown
    vsmb snippet machine.json
    vsmb analyze machine.json --explain
    vsmb share machine.json --base-url https://example.com/builder
    vsmb open-link "https://example.com/builder?state=eyJ2..."
    vsmb templates [async-fetch]
    vsmb import-source Component.tsx
    vsmb layout machine.json --timeout 2
    vsmb --settings ~/.vsmb.json settings set layout_timeout_seconds 2
    vsmb --settings ~/.vsmb.json recent

`--settings` names a JSON store holding the settings and the list of recent
diagrams. Without it the built-in defaults apply and nothing is remembered.

Exit codes: 0 on success, 1 when the model is invalid or cannot be decoded,
2 on usage errors (reported by argparse).
"""
import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from .core.machine_model import StateMachineModel, OutputFormat, OutputLanguage
from .core.validation import VsmbError, validate_model
from .core.analysis import analyze_model, suggest_improvements, explain_model
from .core.editor_history import MachineEditor
from .core.templates import list_templates, get_template
from .core.source_importer import parse_react_component
from .codegen.code_generator import generate_code
from .codegen.unit_test_generator import export_tests
from .managers.diagram_library import DiagramHistory
from .managers.settings_manager import SettingsManager, SettingCategory
from .managers.storage import InMemoryStore, JsonFileStore
from .export_utils import export_to_mermaid, mermaid_markdown, generate_snippet_for_agent
from .services.file_loader import load_model_file
from .services.serialization import dump_file_payload, share_url, state_from_url, decode_state
from .utils.config import APP_NAME, APP_VERSION
from .utils.layout import compute_layout, graphviz_layout, compute_level_layout
from .utils.logging_setup import setup_global_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class CommandFailed(VsmbError):
    """A command could not produce its output; main() reports it and exits with 1."""
    pass


def _load(path: str, strict: bool = True) -> StateMachineModel:
    model, error_message = load_model_file(path, strict=strict)
    if model is None:
        raise CommandFailed(error_message)
    return model


def _emit(text: str, output: Optional[str]):
    """Writes `text` to `output`, or to stdout when no path is given."""
    if not output:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        return
    directory = os.path.dirname(os.path.abspath(output))
    os.makedirs(directory, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        f.write(text)
    print(f"Wrote {output}")


def _emit_model(model: StateMachineModel, args):
    """Writes a diagram file; saved files are remembered in the recent list of the settings store."""
    _emit(dump_file_payload(model), args.output)
    if args.output and args.settings:
        DiagramHistory.from_settings(args.settings_manager, args.settings_store).add(model)


def _with_overrides(model: StateMachineModel, args) -> StateMachineModel:
    if getattr(args, 'format', None):
        model = replace(model, output_format=OutputFormat(args.format))
    if getattr(args, 'language', None):
        model = replace(model, output_language=OutputLanguage(args.language))
    return model


def _as_new_machine(model: StateMachineModel, settings: SettingsManager) -> StateMachineModel:
    """Applies the configured output defaults to a machine created from scratch."""
    return replace(model,
                   output_format=OutputFormat(settings.get("default_output_format")),
                   output_language=OutputLanguage(settings.get("default_output_language")))


def _require_settings_file(args, action: str):
    if not args.settings:
        raise CommandFailed(f"'settings {action}' needs --settings <store.json> to keep the change.")


def _parse_setting_value(text: str):
    """JSON scalars (`20`, `false`, `2.5`) are parsed, anything else is taken as a string."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


# --- Commands ---

def cmd_validate(args) -> int:
    model = _load(args.file, strict=False)
    result = validate_model(model)
    if result.valid:
        print(f"{args.file}: valid")
        return EXIT_OK
    for error in result.errors:
        print(f"{args.file}: {error.path}: {error.message}")
    print(f"{result.error_count} error(s) found.")
    return EXIT_FAILURE


def cmd_generate(args) -> int:
    model = _with_overrides(_load(args.file), args)
    _emit(generate_code(model), args.output)
    return EXIT_OK


def cmd_tests(args) -> int:
    model = _with_overrides(_load(args.file), args)
    _emit(export_tests(model), args.output)
    return EXIT_OK


def cmd_mermaid(args) -> int:
    model = _load(args.file)
    text = mermaid_markdown(model) if args.markdown else export_to_mermaid(model)
    _emit(text, args.output)
    return EXIT_OK


def cmd_snippet(args) -> int:
    model = _with_overrides(_load(args.file), args)
    _emit(generate_snippet_for_agent(model), args.output)
    return EXIT_OK


def cmd_analyze(args) -> int:
    model = _load(args.file, strict=False)
    issues = analyze_model(model)
    if not issues:
        print("No issues found.")
    for issue in issues:
        print(f"[{issue.type.value}] {issue.message}")
    suggestions = suggest_improvements(model)
    if suggestions:
        print("\nSuggestions:")
        for suggestion in suggestions:
            print(f"- {suggestion.title}: {suggestion.description}")
    if args.explain:
        print()
        print(explain_model(model))
    return EXIT_OK


def cmd_share(args) -> int:
    model = _load(args.file)
    print(share_url(model, args.base_url or args.settings_manager.get("share_base_url")))
    return EXIT_OK


def cmd_open_link(args) -> int:
    link = args.link.strip()
    model = state_from_url(link) if "://" in link or link.startswith("?") else decode_state(link)
    if model is None:
        raise CommandFailed("The link does not contain a readable state machine.")
    result = validate_model(model)
    for error in result.errors:
        logger.warning(f"Shared model: {error.path}: {error.message}")
    _emit_model(model, args)
    return EXIT_OK


def cmd_templates(args) -> int:
    if not args.template_id:
        for definition in list_templates():
            print(f"{definition.id:20} {definition.name}: {definition.description}")
        return EXIT_OK
    model = get_template(args.template_id)
    if model is None:
        raise CommandFailed(f"Unknown template: {args.template_id}")
    _emit_model(_as_new_machine(model, args.settings_manager), args)
    return EXIT_OK


def cmd_import_source(args) -> int:
    try:
        with open(args.file, 'r', encoding='utf-8') as f:
            source = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise CommandFailed(f"Could not read '{args.file}': {e}")
    model = parse_react_component(source)
    if model is None:
        raise CommandFailed("No state machine could be inferred from the source.")
    _emit_model(_as_new_machine(model, args.settings_manager), args)
    return EXIT_OK


def cmd_layout(args) -> int:
    settings = args.settings_manager
    editor = MachineEditor.from_settings(settings, model=_load(args.file, strict=False))
    timeout = args.timeout if args.timeout is not None else settings.get("layout_timeout_seconds")
    if args.no_graphviz or not settings.get("layout_use_graphviz"):
        positions = compute_level_layout(editor.model)
    else:
        positions = asyncio.run(compute_layout(editor.model, graphviz_layout, timeout))
    editor.apply_layout(positions)
    _emit_model(editor.model, args)
    return EXIT_OK


def cmd_recent(args) -> int:
    history = DiagramHistory.from_settings(args.settings_manager, args.settings_store)
    if args.entry_id:
        entry = history.get(args.entry_id)
        if entry is None:
            raise CommandFailed(f"No recent diagram with id '{args.entry_id}'.")
        _emit(dump_file_payload(entry.model), args.output)
        return EXIT_OK
    entries = history.entries()
    if not entries:
        print("No recent diagrams.")
    for entry in entries:
        saved = datetime.fromtimestamp(entry.updated_at / 1000).strftime('%Y-%m-%d %H:%M:%S')
        print(f"{entry.id:28} {saved}  {entry.name}")
    return EXIT_OK


def cmd_settings(args) -> int:
    settings = args.settings_manager
    action = args.settings_action or 'list'

    if action == 'list':
        for category in SettingCategory:
            print(f"[{category.value}]")
            for key, value in settings.get_by_category(category).items():
                marker = "" if settings.is_default_value(key) else "  (changed)"
                print(f"  {key} = {json.dumps(value)}{marker}")
        return EXIT_OK

    if action == 'set':
        _require_settings_file(args, action)
        if settings.get_setting_info(args.key) is None:
            raise CommandFailed(f"Unknown setting: {args.key}")
        if not settings.set(args.key, _parse_setting_value(args.value)):
            raise CommandFailed(f"Invalid value for {args.key}: {args.value}")
        print(f"{args.key} = {json.dumps(settings.get(args.key))}")
    elif action == 'reset':
        _require_settings_file(args, action)
        if args.category:
            settings.reset_category(SettingCategory(args.category))
        else:
            settings.reset_to_defaults()
    elif action == 'export':
        if not settings.export_settings(args.path):
            raise CommandFailed(f"Could not export settings to '{args.path}'.")
        print(f"Wrote {args.path}")
    elif action == 'import':
        _require_settings_file(args, action)
        if not settings.import_settings(args.path):
            raise CommandFailed(f"Could not import settings from '{args.path}'.")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vsmb", description=f"{APP_NAME} command line tool")
    parser.add_argument('--version', action='version', version=f"%(prog)s {APP_VERSION}")
    parser.add_argument('--settings', metavar='STORE',
                        help='JSON store holding settings and recent diagrams')
    parser.add_argument('--log-level', choices=LOG_LEVELS,
                        help='Console log level (default: the log_level setting)')
    parser.add_argument('--log-file', help='Also write the full log to this file')
    parser.add_argument('--log-export', metavar='PATH',
                        help='Write the log of this run to PATH when done (JSON for a .json suffix, text otherwise)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    def add_command(name, func, help_text, file_help='Diagram JSON file', output=True):
        sub = subparsers.add_parser(name, help=help_text)
        if file_help:
            sub.add_argument('file', help=file_help)
        if output:
            sub.add_argument('-o', '--output', help='Write to this file instead of stdout')
        sub.set_defaults(func=func)
        return sub

    def add_overrides(sub):
        sub.add_argument('--format', choices=[f.value for f in OutputFormat],
                         help="Override the model's output format")
        sub.add_argument('--language', choices=[l.value for l in OutputLanguage],
                         help="Override the model's output language")

    add_command('validate', cmd_validate, 'Check a diagram and list every error', output=False)
    add_overrides(add_command('generate', cmd_generate, 'Generate state machine source code'))
    tests = add_command('tests', cmd_tests, 'Generate a Vitest suite for the useReducer module')
    tests.add_argument('--language', choices=[l.value for l in OutputLanguage],
                       help="Override the model's output language")
    mermaid = add_command('mermaid', cmd_mermaid, 'Export a Mermaid stateDiagram-v2')
    mermaid.add_argument('--markdown', action='store_true', help='Wrap the diagram in a Markdown document')
    add_overrides(add_command('snippet', cmd_snippet, 'Build the agent-facing snippet'))
    analyze = add_command('analyze', cmd_analyze, 'Report reachability issues and suggestions', output=False)
    analyze.add_argument('--explain', action='store_true', help='Also print a Markdown explanation')
    share = add_command('share', cmd_share, 'Print a shareable link for a diagram', output=False)
    share.add_argument('--base-url', help='Base URL of the link (default: the share_base_url setting)')
    open_link = add_command('open-link', cmd_open_link, 'Decode a shared link into a diagram file', file_help=None)
    open_link.add_argument('link', help='Shared URL or bare encoded state')
    templates = add_command('templates', cmd_templates, 'List built-in templates or export one', file_help=None)
    templates.add_argument('template_id', nargs='?', help='Template to export')
    add_command('import-source', cmd_import_source, 'Infer a diagram from React component source',
                file_help='Component source file')
    layout = add_command('layout', cmd_layout, 'Auto-layout a diagram')
    layout.add_argument('--timeout', type=float,
                        help='Seconds allowed for Graphviz before falling back (default: the layout_timeout_seconds setting)')
    layout.add_argument('--no-graphviz', action='store_true', help='Use the built-in level layout only')
    recent = add_command('recent', cmd_recent, 'List recently saved diagrams or export one', file_help=None)
    recent.add_argument('entry_id', nargs='?', help='Recent diagram to export')

    settings = add_command('settings', cmd_settings, 'Show or change settings', file_help=None, output=False)
    actions = settings.add_subparsers(dest='settings_action')
    actions.add_parser('list', help='Show every setting (default)')
    set_parser = actions.add_parser('set', help='Change one setting')
    set_parser.add_argument('key')
    set_parser.add_argument('value', help='JSON scalar or plain text')
    reset_parser = actions.add_parser('reset', help='Restore defaults')
    reset_parser.add_argument('--category', choices=[c.value for c in SettingCategory])
    actions.add_parser('export', help='Write the settings to a JSON file').add_argument('path')
    actions.add_parser('import', help='Read settings from a JSON file').add_argument('path')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    args.settings_store = JsonFileStore(args.settings) if args.settings else InMemoryStore()
    args.settings_manager = SettingsManager(args.settings_store)
    memory_handler = setup_global_logging(args.log_level or args.settings_manager.get("log_level"), args.log_file)
    try:
        return args.func(args)
    except CommandFailed as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        if args.log_export and not memory_handler.export_logs(args.log_export):
            print(f"Error: could not write the log to {args.log_export}", file=sys.stderr)


if __name__ == '__main__':
    sys.exit(main())
