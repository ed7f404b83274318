"""
CLI interface for addonmgr.

Provides commands to render, install and delete addon lifecycle workflows.

The addon is read from an Addon resource YAML file; its spec.lifecycle holds
the workflow templates (prereqs, install, delete, validate).
"""

import sys
from dataclasses import replace
from pathlib import Path

import click
import yaml

from addonmgr import __version__
from addonmgr.config import ConfigError, load_config
from addonmgr.document import dump_yaml, load_first_yaml
from addonmgr.errors import AddonManagerError
from addonmgr.schemas import AddonRef, workflow_name
from addonmgr.store.base import StoreError

STEPS = ("prereqs", "install", "delete", "validate")


def _load_addon(addon_file: Path) -> AddonRef:
    try:
        manifest = load_first_yaml(addon_file.read_text())
    except yaml.YAMLError as e:
        raise click.BadParameter(f"invalid YAML: {e}", param_hint="ADDON_FILE")
    if not isinstance(manifest, dict):
        raise click.BadParameter("expected an Addon resource mapping", param_hint="ADDON_FILE")
    try:
        return AddonRef.from_manifest(manifest)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="ADDON_FILE")


def _lifecycle(ctx, addon: AddonRef, dry_run: bool = False):
    from addonmgr.events import KubernetesEventRecorder, LoggingEventRecorder
    from addonmgr.store import InMemoryWorkflowStore, KubernetesWorkflowStore, load_kube_client_config
    from addonmgr.workflows import WorkflowLifecycle

    config = ctx.obj["config"]
    if dry_run:
        return WorkflowLifecycle(InMemoryWorkflowStore(), addon, recorder=LoggingEventRecorder(), config=config)

    load_kube_client_config()
    return WorkflowLifecycle(
        KubernetesWorkflowStore(config=config),
        addon,
        recorder=KubernetesEventRecorder(config=config),
        config=config,
    )


def _template(addon: AddonRef, step: str):
    template = addon.lifecycle.get(step)
    if template is None:
        click.echo(f"✗ Addon {addon.name} has no {step} workflow", err=True)
        raise SystemExit(1)
    return template


@click.group()
@click.version_option(version=__version__, prog_name="addonmgr")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Config file (default: $ADDONMGR_HOME/config.yaml)")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx, config_path, log_level):
    """
    addonmgr - Addon lifecycle through workflow executions.
    """
    from addonmgr.utils import setup_logging_from_config

    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
        if log_level:
            config = replace(config, log_level=log_level.upper())
            config.validate()
    except ConfigError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)
    ctx.obj["config"] = config
    setup_logging_from_config(config)


@main.command("render")
@click.argument("addon_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--step", type=click.Choice(STEPS), default="install", show_default=True)
@click.option("--name", default=None, help="Workflow name (default: <addon>-<step>-<checksum>-wf)")
@click.pass_context
def render(ctx, addon_file, step, name):
    """Print the processed workflow for a lifecycle step without submitting it."""
    addon = _load_addon(addon_file)
    template = _template(addon, step)
    try:
        doc = _lifecycle(ctx, addon, dry_run=True).render(template, name or workflow_name(addon, step))
    except AddonManagerError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)
    click.echo(dump_yaml(doc.content), nl=False)


@main.command("install")
@click.argument("addon_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--step", type=click.Choice(STEPS), default="install", show_default=True)
@click.option("--name", default=None, help="Workflow name (default: <addon>-<step>-<checksum>-wf)")
@click.option("--dry-run", is_flag=True, help="Submit to an in-memory store instead of the cluster")
@click.pass_context
def install(ctx, addon_file, step, name, dry_run):
    """Submit the workflow for a lifecycle step and print the addon phase."""
    addon = _load_addon(addon_file)
    template = _template(addon, step)
    name = name or workflow_name(addon, step)

    if dry_run:
        click.echo("=== DRY RUN MODE === (no cluster writes)")

    try:
        phase = _lifecycle(ctx, addon, dry_run=dry_run).install(template, name)
    except AddonManagerError as e:
        click.echo(f"✗ {name}: {e.phase.value}: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"✓ {addon.namespace}/{name}: {phase.value}")


@main.command("delete")
@click.argument("addon_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("name")
@click.pass_context
def delete(ctx, addon_file, name):
    """Delete a workflow execution in the addon namespace."""
    addon = _load_addon(addon_file)
    try:
        _lifecycle(ctx, addon).delete(name)
    except StoreError as e:
        click.echo(f"✗ {name}: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"✓ Deleted {addon.namespace}/{name}")


if __name__ == "__main__":
    sys.exit(main())
