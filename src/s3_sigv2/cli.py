#!/usr/bin/env python3
"""S3 CLI for signing requests with AWS Signature Version 2."""

import base64
import dataclasses
import sys

import click

from .auth import AWSSignatureV2
from .config import Config
from .request import Operation, new_presigned_request, new_request


@click.group()
@click.option("--config-file", help="Path to AWS config file")
@click.option("--credentials-file", help="Path to AWS credentials file")
@click.option("--profile", default="default", help="AWS profile name")
@click.option("--endpoint-url", help="S3 server address, e.g. https://s3.example.com")
@click.option(
    "--virtual-style", is_flag=True, help="Bucket is part of the endpoint host"
)
@click.pass_context
def cli(ctx, config_file, credentials_file, profile, endpoint_url, virtual_style):
    """S3 SigV2 - sign S3 requests, URLs and POST policies."""
    ctx.ensure_object(dict)

    if config_file:
        try:
            config = Config.from_aws_config(
                profile_name=profile,
                config_path=config_file,
                credentials_path=credentials_file,
            )
        except (FileNotFoundError, ValueError) as e:
            click.echo(f"Error loading config file: {e}", err=True)
            sys.exit(1)
    else:
        config = Config.from_env()
        if not config.access_key or not config.secret_key:
            click.echo(
                "Error: AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must be set",
                err=True,
            )
            sys.exit(1)

    overrides = {"virtual_style": virtual_style}
    if endpoint_url:
        overrides["endpoint_url"] = endpoint_url

    ctx.obj["config"] = dataclasses.replace(config, **overrides)


def _operation(config: Config, method: str, path: str) -> Operation:
    try:
        server_address = config.server_address
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    return Operation(server_address=server_address, method=method.upper(), path=path)


@cli.command()
@click.argument("method")
@click.argument("path")
@click.option("--expires-in", default=3600, help="URL expiration time in seconds")
@click.pass_context
def presigned_url(ctx, method, path, expires_in):
    """Generate a presigned URL for PATH (bucket/key)."""
    config = ctx.obj["config"]

    op = _operation(config, method, path)
    request = new_presigned_request(op, config, expires_in)
    click.echo(request.presign())


@cli.command()
@click.argument("method")
@click.argument("path")
@click.option(
    "--header", "headers", multiple=True, help="Extra header as NAME:VALUE"
)
@click.option("--show-string-to-sign", is_flag=True, help="Print the signed text")
@click.pass_context
def sign(ctx, method, path, headers, show_string_to_sign):
    """Sign a request for PATH (bucket/key?query) and print its headers."""
    config = ctx.obj["config"]

    op = _operation(config, method, path)
    request = new_request(op, config)
    for header in headers:
        name, sep, value = header.partition(":")
        if not sep:
            raise click.BadParameter(
                f"'{header}' is not in NAME:VALUE form", param_hint="--header"
            )
        request.add(name.strip(), value.strip())

    request.sign()

    click.echo(f"{request.method} {request.url}")
    for name, value in request.headers.items():
        click.echo(f"{name}: {value}")

    if show_string_to_sign:
        click.echo()
        click.echo(request.string_to_sign())


@cli.command()
@click.argument("policy")
@click.option(
    "--encode",
    is_flag=True,
    help="POLICY is a JSON policy file to Base64 encode before signing",
)
@click.pass_context
def sign_policy(ctx, policy, encode):
    """Sign a Base64 encoded POST policy document."""
    config = ctx.obj["config"]

    if encode:
        with open(policy, "rb") as f:
            policy = base64.b64encode(f.read()).decode("ascii")
        click.echo(f"Policy: {policy}")

    auth = AWSSignatureV2(config.access_key, config.secret_key)
    signature = auth.post_presign_signature(policy)

    if encode:
        click.echo(f"Signature: {signature}")
    else:
        click.echo(signature)


if __name__ == "__main__":
    cli()
