"""Service configuration read from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError

DEFAULT_DURATION_SECONDS = 3600

ENV_PUBLIC_KEY = "TOKEN_SERVICE_PUBLIC_KEY"
ENV_ROLE_ARN = "TOKEN_SERVICE_ROLE_ARN"
ENV_DURATION = "TOKEN_SERVICE_DURATION"
ENV_AWS_KEY = "TOKEN_SERVICE_AWS_KEY"
ENV_AWS_SECRET = "TOKEN_SERVICE_AWS_SECRET"
ENV_ALLOW_TEST_TOKEN = "TOKEN_SERVICE_ALLOW_TEST_TOKEN"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Settings needed to verify tokens and assume the vending role.

    ``aws_key`` / ``aws_secret`` may be left unset, in which case boto3's
    default credential chain is used for the STS call.
    """

    public_key: str
    role_arn: str
    duration: int = DEFAULT_DURATION_SECONDS
    aws_key: Optional[str] = None
    aws_secret: Optional[str] = None
    jwt_algorithm: str = "RS256"
    allow_test_token: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Build a Config from *environ* (defaults to ``os.environ``).

        Raises:
            ConfigError: a required variable is missing or malformed.
        """
        env = os.environ if environ is None else environ

        public_key = _required(env, ENV_PUBLIC_KEY)
        # Keys stored in single-line settings use a literal "\n".
        public_key = public_key.replace("\\n", "\n")
        role_arn = _required(env, ENV_ROLE_ARN)

        raw_duration = (env.get(ENV_DURATION) or "").strip()
        if raw_duration:
            try:
                duration = int(raw_duration)
            except ValueError:
                raise ConfigError(
                    f"{ENV_DURATION} is not convertible to an integer: {raw_duration!r}"
                ) from None
        else:
            duration = DEFAULT_DURATION_SECONDS

        aws_key = (env.get(ENV_AWS_KEY) or "").strip() or None
        aws_secret = (env.get(ENV_AWS_SECRET) or "").strip() or None
        if bool(aws_key) != bool(aws_secret):
            raise ConfigError(
                f"{ENV_AWS_KEY} and {ENV_AWS_SECRET} must be set together."
            )

        allow_test_token = (env.get(ENV_ALLOW_TEST_TOKEN) or "").strip().lower() in _TRUTHY

        return cls(
            public_key=public_key,
            role_arn=role_arn,
            duration=duration,
            aws_key=aws_key,
            aws_secret=aws_secret,
            allow_test_token=allow_test_token,
        )


def _required(env: Mapping[str, str], name: str) -> str:
    value = (env.get(name) or "").strip()
    if not value:
        raise ConfigError(f"Missing {name} in environment!")
    return value
