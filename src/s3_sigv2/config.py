import configparser
import os
import pathlib
import types
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Self

import aiohttp

from . import __version__

DEFAULT_USER_AGENT = f"s3-sigv2/{__version__}"

# Legacy S3 endpoints, region -> host
REGION_HOSTS: Mapping[str, str] = types.MappingProxyType(
    {
        "us-east-1": "s3.amazonaws.com",
        "us-west-1": "s3-us-west-1.amazonaws.com",
        "us-west-2": "s3-us-west-2.amazonaws.com",
        "eu-west-1": "s3-eu-west-1.amazonaws.com",
        "eu-central-1": "s3-eu-central-1.amazonaws.com",
        "ap-southeast-1": "s3-ap-southeast-1.amazonaws.com",
        "ap-southeast-2": "s3-ap-southeast-2.amazonaws.com",
        "ap-northeast-1": "s3-ap-northeast-1.amazonaws.com",
        "sa-east-1": "s3-sa-east-1.amazonaws.com",
    }
)


@dataclass(frozen=True)
class Config:
    access_key: str = ""
    secret_key: str = ""
    region: str = "us-east-1"
    virtual_style: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    accept_type: str = ""
    transport: aiohttp.ClientSession | None = None
    endpoint_url: str | None = None
    region_hosts: Mapping[str, str] = field(default_factory=lambda: REGION_HOSTS)

    @property
    def region_host(self) -> str | None:
        return self.region_hosts.get(self.region)

    @property
    def server_address(self) -> str:
        if self.endpoint_url:
            return self.endpoint_url.rstrip("/")
        if self.region_host is None:
            raise ValueError(f"No endpoint known for region '{self.region}'")
        return f"https://{self.region_host}"

    @classmethod
    def from_env(cls, **kwargs) -> Self:
        return cls(
            access_key=os.getenv("AWS_ACCESS_KEY_ID", ""),
            secret_key=os.getenv("AWS_SECRET_ACCESS_KEY", ""),
            region=os.getenv("AWS_DEFAULT_REGION", "us-east-1"),
            endpoint_url=os.getenv("AWS_ENDPOINT_URL"),
            **kwargs,
        )

    @classmethod
    def from_aws_config(
        cls,
        profile_name: str = "default",
        config_path: str | pathlib.Path | None = None,
        credentials_path: str | pathlib.Path | None = None,
        **kwargs,
    ) -> Self:
        """Loads a profile from the AWS shared config and credentials files.

        Values in the credentials file win over the config file. The region
        falls back to ``AWS_DEFAULT_REGION`` and then ``us-east-1``.
        """
        if config_path is None:
            config_path = pathlib.Path.home() / ".aws" / "config"

        # config file sections are "profile <name>", except for default
        config_section = (
            profile_name if profile_name == "default" else f"profile {profile_name}"
        )
        sections = [
            _read_profile(credentials_path, profile_name),
            _read_profile(config_path, config_section),
        ]

        def _profile_value(key: str) -> str | None:
            return next((s[key] for s in sections if s.get(key)), None)

        keys = {}
        for key in ("aws_access_key_id", "aws_secret_access_key"):
            keys[key] = _profile_value(key)
            if not keys[key]:
                raise ValueError(
                    f"{key} not found for profile '{profile_name}' "
                    f"in config or credentials files"
                )

        return cls(
            access_key=keys["aws_access_key_id"],
            secret_key=keys["aws_secret_access_key"],
            region=_profile_value("region")
            or os.environ.get("AWS_DEFAULT_REGION")
            or "us-east-1",
            endpoint_url=_profile_value("endpoint_url"),
            **kwargs,
        )


def _read_profile(path: str | pathlib.Path | None, section: str) -> dict[str, str]:
    if path is None or not pathlib.Path(path).exists():
        return {}

    parser = configparser.ConfigParser()
    parser.read(path)
    if section not in parser:
        return {}
    return dict(parser[section])
