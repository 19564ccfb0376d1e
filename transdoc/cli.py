"""
transdoc CLI - translate documents from the command line.
"""

import sys
import asyncio
import argparse
import configparser
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .config import DEFAULT_MODEL, ENGINES, configure_logging, load_settings
from .errors import TransDocError, ValidationError
from .models import LANGUAGES, SourceDocument, resolve_language
from .pipeline import TranslationPipeline
from .translators import ModelCache, build_translator

console = Console()


def format_file_size(size_bytes: float) -> str:
    """Format file size in human-readable format."""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.2f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.2f} TB"


class TranslatorCLI:
    """Command-line front-end driving a TranslationPipeline."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or Path.home() / '.transdoc' / 'config.ini'
        self.config = self.load_config()
        self.verbose = False
        self.quiet = False

    def load_config(self) -> configparser.ConfigParser:
        """Load configuration from file if it exists."""
        config = configparser.ConfigParser()
        if self.config_file.exists():
            config.read(self.config_file)
        return config

    def save_config(self):
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            self.config.write(f)

    def set_option(self, section: str, option: str, value: str):
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, option, value)
        self.save_config()

    def print_banner(self):
        if self.quiet:
            return
        console.print(Panel(
            "[cyan bold]transdoc[/cyan bold] [dim]- document translation with formula preservation[/dim]",
            border_style="bright_blue",
            box=box.ROUNDED,
        ))

    def get_api_key(self, args, settings) -> Optional[str]:
        """Get API key from args, env, config, or prompt."""
        if args.api_key:
            return args.api_key
        if settings.gemini_api_key:
            return settings.gemini_api_key
        if self.config.has_option('api', 'key'):
            return self.config.get('api', 'key')
        if not sys.stdin.isatty():
            return None

        console.print(Panel(
            "[yellow]No API key found. Please enter your Gemini API key:[/yellow]\n"
            "[dim]Get your key from: https://ai.google.dev/[/dim]",
            title="[bold]API Configuration[/bold]",
            border_style="yellow"
        ))
        api_key = Prompt.ask("[cyan]Gemini API Key[/cyan]", password=True)
        if api_key and Confirm.ask("\n[cyan]Save API key for future use?[/cyan]"):
            self.set_option('api', 'key', api_key)
            console.print("[green]✓[/green] API key saved to config file")
        return api_key or None

    def translate_single(self, args) -> int:
        """Translate one file and write the rebuilt document next to it."""
        self.print_banner()

        input_path = Path(args.input)
        if not input_path.is_file():
            console.print(f"[red]✗ Input file not found:[/red] {input_path}")
            return 1

        source = resolve_language(args.source)
        target = resolve_language(args.language)
        for value, lang in ((args.source, source), (args.language, target)):
            if lang is None:
                console.print(f"[red]✗ Unknown language:[/red] {value} "
                              "[dim](run 'transdoc languages' for the list)[/dim]")
                return 1

        settings = load_settings()
        settings.engine = args.engine or self.config.get('defaults', 'engine', fallback=settings.engine)
        settings.model = args.model or self.config.get('defaults', 'model', fallback=settings.model)
        if settings.engine == 'gemini':
            settings.gemini_api_key = self.get_api_key(args, settings)
            if not settings.gemini_api_key:
                console.print("[red]✗ API key is required for the Gemini engine[/red]")
                return 1

        translator = build_translator(settings, ModelCache())
        pipeline = TranslationPipeline(
            translator,
            strict_formulas=settings.strict_formulas,
            source_language=source,
            target_language=target,
        )

        document = SourceDocument(
            file_name=input_path.name,
            data=input_path.read_bytes(),
            mime_type=mimetypes.guess_type(input_path.name)[0],
        )

        info_table = Table(title="Translation Details", box=box.ROUNDED, show_header=False)
        info_table.add_column("Property", style="cyan")
        info_table.add_column("Value", style="white")
        info_table.add_row("Input File", str(input_path))
        info_table.add_row("Languages", f"{source.display_name} → {target.display_name}")
        info_table.add_row("Engine", settings.engine if settings.engine != 'gemini'
                           else f"gemini ({settings.model})")
        info_table.add_row("File Size", format_file_size(document.size))
        if not self.quiet:
            console.print(info_table)
            console.print()

        try:
            pipeline.select_file(document)
        except ValidationError as e:
            console.print(f"[red]✗ {e}[/red]")
            return 1

        start_time = datetime.now()
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=self.quiet,
        ) as progress:
            task = progress.add_task("[cyan]Starting...[/cyan]", total=100)
            pipeline.add_listener(lambda snap: progress.update(
                task, completed=snap.progress, description=f"[cyan]{snap.message}[/cyan]"))
            try:
                artifact = asyncio.run(pipeline.run())
            except TransDocError:
                artifact = None

        if artifact is None:
            console.print(Panel(
                f"[red]{pipeline.error}[/red]",
                title="[bold red]Error[/bold red]",
                border_style="red",
                box=box.DOUBLE
            ))
            return 1

        output_path = Path(args.output) if args.output else input_path.parent / artifact.file_name
        if artifact.fallback:
            # Plain text must not land under a .pdf or .docx name
            output_path = output_path.with_suffix('.txt')
            console.print("[yellow]⚠ Could not rebuild the original format; saved the translation as plain text.[/yellow]")
        output_path.write_bytes(artifact.content)
        duration = (datetime.now() - start_time).total_seconds()

        console.print(Panel(
            f"[green]✓ Translation completed successfully![/green]\n\n"
            f"Duration: [cyan]{duration:.2f} seconds[/cyan]\n"
            f"Output saved to: [cyan]{output_path}[/cyan]\n"
            f"File sizes: Input [dim]{format_file_size(document.size)}[/dim] → "
            f"Output [dim]{format_file_size(artifact.size)}[/dim]",
            title="[bold green]Success[/bold green]",
            border_style="green",
            box=box.DOUBLE
        ))
        return 0

    def list_languages(self, args) -> int:
        lang_table = Table(title="Supported Languages", box=box.DOUBLE_EDGE, header_style="bold cyan")
        lang_table.add_column("Code", justify="center", style="cyan", width=8)
        lang_table.add_column("Language", justify="left", style="white", width=15)
        lang_table.add_column("Code", justify="center", style="cyan", width=8)
        lang_table.add_column("Language", justify="left", style="white", width=15)

        mid = len(LANGUAGES) // 2 + len(LANGUAGES) % 2
        for i in range(mid):
            left = LANGUAGES[i]
            if i + mid < len(LANGUAGES):
                right = LANGUAGES[i + mid]
                lang_table.add_row(left.code, left.display_name, right.code, right.display_name)
            else:
                lang_table.add_row(left.code, left.display_name, "", "")

        console.print(lang_table)
        console.print("[dim]Use either the code (e.g. 'es') or the name (e.g. 'Spanish').[/dim]")
        return 0

    def configure(self, args) -> int:
        if args.set_key:
            self.set_option('api', 'key', args.set_key)
            console.print("[green]✓[/green] API key saved to config file")
        if args.set_model:
            self.set_option('defaults', 'model', args.set_model)
            console.print(f"[green]✓[/green] Default model set to: [cyan]{args.set_model}[/cyan]")
        if args.set_engine:
            self.set_option('defaults', 'engine', args.set_engine)
            console.print(f"[green]✓[/green] Default engine set to: [cyan]{args.set_engine}[/cyan]")

        if args.show or not (args.set_key or args.set_model or args.set_engine):
            config_table = Table(title="Current Configuration", box=box.ROUNDED, show_header=False)
            config_table.add_column("Setting", style="cyan")
            config_table.add_column("Value", style="white")

            if self.config.has_option('api', 'key'):
                api_key = self.config.get('api', 'key')
                masked_key = api_key[:10] + '•••' + api_key[-4:] if len(api_key) > 14 else '•••'
                config_table.add_row("API Key", f"[green]{masked_key}[/green]")
            else:
                config_table.add_row("API Key", "[yellow]Not set[/yellow]")

            config_table.add_row("Default Model", self.config.get(
                'defaults', 'model', fallback=f"{DEFAULT_MODEL} [dim](default)[/dim]"))
            config_table.add_row("Default Engine", self.config.get(
                'defaults', 'engine', fallback="gemini [dim](default)[/dim]"))
            config_table.add_row("Config File", f"[dim]{self.config_file}[/dim]")
            console.print(config_table)
        return 0

    def serve(self, args) -> int:
        from .server import run

        run(host=args.host, port=args.port)
        return 0

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog='transdoc',
            description='Translate TXT, PDF and DOCX documents while preserving formulas',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s translate paper.pdf -l Spanish
  %(prog)s translate notes.docx -s es -l en -o notes_en.docx
  %(prog)s translate report.txt -l ar --engine ondevice
  %(prog)s languages
  %(prog)s serve --port 3001
            """
        )
        parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')
        parser.add_argument('-q', '--quiet', action='store_true', help='Suppress non-error output')
        parser.add_argument('--api-key', help='Gemini API key (overrides config/env)')

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        translate_parser = subparsers.add_parser('translate', help='Translate a single document')
        translate_parser.add_argument('input', help='Input file path')
        translate_parser.add_argument('-l', '--language', required=True,
                                      help='Target language (e.g., Spanish, es)')
        translate_parser.add_argument('-s', '--source', default='English',
                                      help='Source language (default: English)')
        translate_parser.add_argument('-o', '--output', help='Output file path (optional)')
        translate_parser.add_argument('-e', '--engine', choices=ENGINES,
                                      help='Translation engine (default: gemini)')
        translate_parser.add_argument('-m', '--model', help=f'Gemini model (default: {DEFAULT_MODEL})')

        subparsers.add_parser('languages', help='List supported languages')

        config_parser = subparsers.add_parser('config', help='Configure application settings')
        config_parser.add_argument('--set-key', help='Set API key')
        config_parser.add_argument('--set-model', help='Set default model')
        config_parser.add_argument('--set-engine', choices=ENGINES, help='Set default engine')
        config_parser.add_argument('--show', action='store_true', help='Show current configuration')

        serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
        serve_parser.add_argument('--host', default='0.0.0.0')
        serve_parser.add_argument('--port', type=int, default=3001)

        return parser

    def run(self, argv=None) -> int:
        parser = self.build_parser()
        args = parser.parse_args(argv)

        self.verbose = args.verbose
        self.quiet = args.quiet
        if args.command != 'serve':
            # The server configures logging from TRANSDOC_LOG_LEVEL
            configure_logging("DEBUG" if self.verbose else "WARNING")

        if args.command == 'translate':
            return self.translate_single(args)
        elif args.command == 'languages':
            return self.list_languages(args)
        elif args.command == 'config':
            return self.configure(args)
        elif args.command == 'serve':
            return self.serve(args)

        self.print_banner()
        parser.print_help()
        return 0


def main(argv=None):
    """Main entry point with exception handling."""
    try:
        sys.exit(TranslatorCLI().run(argv))
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠ Translation cancelled by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
