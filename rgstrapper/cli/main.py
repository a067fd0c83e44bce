# rgstrapper/cli/main.py
import os

import click
from loguru import logger as log

from rgstrapper.cli.report import summary
from rgstrapper.context import config as cfg
from rgstrapper.context.logger import Logger
from rgstrapper.rgazure.client import AzureCliClient
from rgstrapper.rgazure.ids import derive_names
from rgstrapper.rgazure.provision import Provision
from rgstrapper.util.error_handling import ProvisionError

EPILOG = """
\b
Environment variables:
  PROJECT, STAGE, SUFFIX (optional), LOCATION (default northeurope)
  SUBSCRIPTION or AZURE_SUBSCRIPTION_ID (optional), TENANT or AZURE_TENANT_ID (optional)

\b
Examples:
  PROJECT=myapp STAGE=dev rgstrapper
  rgstrapper -p myapp -s prod -x eu -l westeurope
  rgstrapper -p myapp -s dev -S <subscription-id> -T <tenant-id>
"""


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog=EPILOG,
)
@click.option("--project", "-p", default=None, help="Project name (required) or set PROJECT.")
@click.option("--stage", "-s", default=None, help="Stage/environment (required) or set STAGE.")
@click.option("--suffix", "-x", default=None, help="Optional suffix (or set SUFFIX).")
@click.option("--location", "-l", default=None,
              help=f"Azure region (default: {cfg.DEFAULT_LOCATION}) or set LOCATION.")
@click.option("--subscription", "-S", default=None,
              help="Subscription id or name to use (or set SUBSCRIPTION / AZURE_SUBSCRIPTION_ID).")
@click.option("--tenant", "-T", default=None,
              help="Tenant id or domain to check against (or set TENANT / AZURE_TENANT_ID). "
                   "If different from current, run 'az login --tenant <id>' first.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr.")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None,
              help=f"Also write logs to this file (or set {cfg.LOG_FILE_ENV}).")
@click.pass_context
def cli(ctx, project, stage, suffix, location, subscription, tenant, verbose, log_file):
    """
    Create an Azure resource group and a user-assigned managed identity in it,
    then assign the identity the Owner role at the resource group scope.

    Names: rg-{project}-{stage}[-{suffix}] and id-{project}-{stage}[-{suffix}].
    Flags override environment variables. Safe to re-run.
    """
    log_file = log_file or os.environ.get(cfg.LOG_FILE_ENV)
    try:
        Logger.init_logger(level="DEBUG" if verbose else "WARNING", log_file=log_file)
    except OSError as ex:
        raise click.ClickException(f"Cannot open log file '{log_file}': {ex}") from ex
    flags = {
        "project": project,
        "stage": stage,
        "suffix": suffix,
        "location": location,
        "subscription": subscription,
        "tenant": tenant,
    }
    client = (ctx.obj or {}).get("client") or AzureCliClient()

    try:
        config = cfg.resolve(flags, os.environ)
        names = derive_names(config)
        result = Provision.run(client, config, names)
    except ProvisionError as ex:
        log.debug("[cli] Aborting: {!r}", ex)
        raise click.ClickException(str(ex)) from ex

    click.echo(summary(result))
