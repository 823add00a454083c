from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from shared_libs.config_models.errors import ClockChainError, PluginLoadError
from shared_libs.plugin_core.registry_loader import DEFAULT_PLUGINS_DIR, load_registry

from clockbuild.generators.merged_config import render_yaml, summary_lines, write_yaml
from clockbuild.run import run_pipeline

__version__ = "0.1.0"

RULE = "=" * 60


app = typer.Typer(help="ptpctl - PTP clock chain configuration parser and validator", add_completion=False)


def _version_callback(value: bool) -> None:
	if value:
		typer.echo(f"ptp-config-parser v{__version__}")
		raise typer.Exit()


def _configure_logging(level_name: str) -> None:
	level = getattr(logging, level_name.upper(), None)
	if not isinstance(level, int):
		typer.secho(f"Unknown log level: {level_name}", fg=typer.colors.RED)
		raise typer.Exit(code=1)
	logging.basicConfig(
		level=level,
		format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
	)


def _list_plugins(plugins_dir: Path) -> None:
	try:
		reg = load_registry(plugins_dir)
	except PluginLoadError as e:
		typer.secho(f"Failed to load plugins: {e}", fg=typer.colors.RED)
		raise typer.Exit(code=1)
	if not len(reg):
		typer.echo(f"No hardware plugins found in {plugins_dir}")
		return
	for plugin in reg.plugins():
		info = plugin.plugin_info
		parts = [plugin.name] + [part for part in (info.vendor, info.version, info.description) if part]
		source = reg.source_of(plugin.name)
		if source is not None:
			parts.append(str(source))
		typer.echo(" | ".join(parts))


@app.command()
def main(
	ctx: typer.Context,
	config_file: Optional[Path] = typer.Argument(None, help="Clock chain YAML configuration file"),
	plugins_dir: Path = typer.Option(
		DEFAULT_PLUGINS_DIR,
		"--plugins-dir",
		envvar="PTP_PLUGINS_DIR",
		help="Directory of hardware plugin YAML files",
	),
	output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the merged configuration to this file"),
	show_merged: bool = typer.Option(True, "--show-merged/--no-show-merged", help="Print the merged configuration"),
	log_level: str = typer.Option("WARNING", "--log-level", envvar="PTP_LOG_LEVEL", help="Logging level"),
	list_plugins: bool = typer.Option(False, "--list-plugins", help="List loaded hardware plugins and exit"),
	version: bool = typer.Option(
		False,
		"--version",
		"-v",
		callback=_version_callback,
		is_eager=True,
		help="Show version and exit",
	),
):
	"""Parse, resolve, merge plugin defaults into and validate a clock chain configuration."""
	_configure_logging(log_level)

	if list_plugins:
		_list_plugins(plugins_dir)
		return

	if config_file is None:
		typer.echo("PTP Hardware Configuration Parser")
		typer.echo(f"Version: {__version__}")
		typer.echo(ctx.get_usage())
		raise typer.Exit(code=1)

	try:
		result = run_pipeline(config_file, plugins_dir, tolerate_plugin_errors=True)
	except ClockChainError as e:
		typer.secho(f"Error: {e}", fg=typer.colors.RED)
		raise typer.Exit(code=1)

	if result.plugin_error is not None:
		typer.secho(f"Warning: Failed to load plugins: {result.plugin_error}", fg=typer.colors.YELLOW)
		typer.echo("Continuing without plugin defaults...")
	else:
		names = sorted(result.registry.names())
		typer.echo(f"Loaded {len(names)} hardware plugins: {names}")
		if show_merged:
			typer.echo(RULE)
			typer.echo("MERGED CONFIGURATION (User Config + Plugin Defaults)")
			typer.echo(RULE)
			typer.echo(render_yaml(result.chain))
			typer.echo(RULE)

	if output is not None:
		write_yaml(output, result.chain)
		typer.echo(f"Wrote merged configuration to {output}")

	typer.secho(f"Successfully parsed and validated: {config_file}", fg=typer.colors.GREEN)
	for line in summary_lines(result.chain):
		typer.echo(line)


if __name__ == "__main__":
	app()
