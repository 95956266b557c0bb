"""
Command Line Interface for DX.
"""
import json
import os
import sys

import click
from dotenv import load_dotenv

from ..MANAGERS.dev_proxy_manager import DevProxyManager
from ..MANAGERS.secret_manager import SecretManager
from ..RESOLVERS.config_resolver import ConfigResolver
from ..STORAGE.encryptor import AesGcmEncryptor
from ..STORAGE.file_system import LocalFileSystem
from ..STORAGE.key_vault import KeyringKeyVault
from ..STORAGE.secret_store import EncryptedFileSecretStore
from ..UTILS.logging_setup import setup_logging
from ..UTILS.template_extractor import TemplateVariableExtractor
from ..errors import ContextNotFoundError, DxError


class App:
    """
    Composition root: one resolver per process, shared by every command.
    """
    def __init__(self, home=None):
        self.file_system = LocalFileSystem(home)
        self.resolver = ConfigResolver(self.file_system)
        self._secret_store = None

    @property
    def secret_store(self) -> EncryptedFileSecretStore:
        if self._secret_store is None:
            self._secret_store = EncryptedFileSecretStore(self.file_system, KeyringKeyVault(), AesGcmEncryptor())
        return self._secret_store

    def secret_manager(self) -> SecretManager:
        return SecretManager(self.resolver, self.secret_store)

    def dev_proxy_manager(self) -> DevProxyManager:
        return DevProxyManager(self.resolver, self.file_system)


class DxGroup(click.Group):
    """Reports DxError as a one-line message and exit status 1."""
    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except DxError as e:
            click.secho(f"Error: {e}", fg="red", err=True)
            ctx.exit(1)


@click.group(cls=DxGroup)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.option('--home', envvar='DX_HOME', default=None, help='Directory holding .dx-config.yaml and .dx/')
@click.pass_context
def cli(ctx, verbose, home):
    """
    DX - development environment contexts.

    Resolves configuration contexts and manages their secrets.
    """
    setup_logging("DEBUG" if verbose else os.environ.get("DX_LOG_LEVEL", "WARNING"))
    ctx.ensure_object(dict)
    if 'app' not in ctx.obj:
        ctx.obj['app'] = App(home)


@cli.command()
@click.pass_context
def init(ctx):
    """Write a default configuration file."""
    app = ctx.obj['app']
    app.resolver.init_config()
    app.resolver.save_current_context_name("default")
    click.echo("Configuration initialized with context 'default'.")


@cli.group()
def context():
    """Inspect and switch configuration contexts."""


@context.command('list')
@click.pass_context
def context_list(ctx):
    """List context names."""
    for c in ctx.obj['app'].resolver.load().contexts:
        click.echo(c.name)


@context.command('set')
@click.argument('name')
@click.pass_context
def context_set(ctx, name):
    """Select the current context."""
    resolver = ctx.obj['app'].resolver
    if not resolver.load().context_exists(name):
        raise ContextNotFoundError(name)
    resolver.save_current_context_name(name)
    click.echo(f"Switched to context '{name}'.")


@context.command('print')
@click.pass_context
def context_print(ctx):
    """Print the resolved current context, derived paths included."""
    current = ctx.obj['app'].resolver.load_current_context()
    data = current.model_dump(by_alias=True)
    for service, resolved in zip(data['services'], current.services):
        service['path'] = resolved.path
        service['helmPath'] = resolved.helm_path
        for image, resolved_image in zip(service['dockerImages'], resolved.docker_images):
            image['path'] = resolved_image.path
    click.echo(json.dumps(data, indent=4))


@cli.group()
def secret():
    """Manage the secrets of the current context."""


@secret.command('set')
@click.argument('key')
@click.pass_context
def secret_set(ctx, key):
    """Set a secret (value read without echo)."""
    value = click.prompt(f"Enter value for {key}", hide_input=True, default="", show_default=False)
    ctx.obj['app'].secret_manager().set(key, value)
    click.secho(f"Secret '{key}' saved", fg="green")


@secret.command('get')
@click.argument('key')
@click.pass_context
def secret_get(ctx, key):
    """Print a secret value."""
    click.echo(ctx.obj['app'].secret_manager().get(key))


@secret.command('list')
@click.pass_context
def secret_list(ctx):
    """List secret keys."""
    keys = ctx.obj['app'].secret_manager().list_keys()
    if not keys:
        click.echo("No secrets configured")
        return
    for key in keys:
        click.echo(f"  * {key}")


@secret.command('delete')
@click.argument('key')
@click.pass_context
def secret_delete(ctx, key):
    """Delete a secret."""
    ctx.obj['app'].secret_manager().delete(key)
    click.secho(f"Secret '{key}' deleted", fg="green")


@secret.command('configure')
@click.option('--check', is_flag=True, help='Only report missing secrets')
@click.pass_context
def secret_configure(ctx, check):
    """Prompt for secrets referenced by templates but not yet stored."""
    prompt = None
    if sys.stdin.isatty():
        def prompt(key):
            return click.prompt(f"  Enter value for {key}", hide_input=True, default="", show_default=False)

    report = ctx.obj['app'].secret_manager().configure(check_only=check, prompt=prompt)
    if not report.expected:
        click.echo("No secrets referenced in configuration templates")
    elif not report.missing:
        click.secho(f"All {len(report.expected)} expected secrets configured", fg="green")
    for key, reason in report.skipped:
        click.secho(f"  Skipping '{key}': {reason}", fg="yellow")
    if report.added:
        click.secho(f"Configured {len(report.added)} secrets", fg="green")


@cli.command('show-vars')
@click.argument('script', required=False)
@click.pass_context
def show_vars(ctx, script):
    """Show the secrets and services templates refer to."""
    current = ctx.obj['app'].resolver.load_current_context()
    if script:
        if script not in current.scripts:
            raise DxError(f"script '{script}' not found in context '{current.name}'")
        variables = TemplateVariableExtractor.extract_variables(current.scripts[script])
    else:
        variables = {"Secrets": TemplateVariableExtractor.extract_secret_keys(current)}
    for kind in sorted(variables):
        click.echo(f"{kind}:")
        for name in variables[kind]:
            click.echo(f"  {name}")


@cli.group()
def proxy():
    """Dev proxy configuration."""


@proxy.command('generate')
@click.pass_context
def proxy_generate(ctx):
    """Write the dev proxy files for the current context."""
    configs = ctx.obj['app'].dev_proxy_manager().save_configuration()
    click.echo(f"Dev proxy configuration generated (checksum {configs.checksum}).")


def main():
    """
    Main entry point for the CLI.
    """
    load_dotenv()
    cli(obj={})


if __name__ == '__main__':
    main()
