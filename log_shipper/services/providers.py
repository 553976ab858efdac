"""Catalog of log delivery providers supported by the log shipper.

The catalog is static and built once at import time. Providers flagged `auto`
are provisioned as a Fly add-on; every other provider needs its delivery
credentials supplied by the operator as secrets.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class Provider:
    slug: str
    name: str
    auto: bool = False
    required_vars: tuple[str, ...] = ()
    optional_vars: tuple[str, ...] = ()
    # Secret key that receives the add-on token for `auto` providers.
    token_secret: Optional[str] = None

    @property
    def all_vars(self) -> tuple[str, ...]:
        return self.required_vars + self.optional_vars


_PROVIDERS: tuple[Provider, ...] = (
    Provider(
        slug="aws_s3",
        name="AWS S3",
        required_vars=("AWS_BUCKET", "AWS_REGION", "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"),
        optional_vars=("S3_ENDPOINT",),
    ),
    Provider(slug="axiom", name="Axiom", required_vars=("AXIOM_TOKEN", "AXIOM_DATASET")),
    Provider(
        slug="datadog",
        name="Datadog",
        required_vars=("DATADOG_API_KEY",),
        optional_vars=("DATADOG_SITE",),
    ),
    Provider(
        slug="erasearch",
        name="Erasearch",
        required_vars=("ERASEARCH_URL", "ERASEARCH_INDEX", "ERASEARCH_AUTH"),
    ),
    Provider(slug="honeycomb", name="Honeycomb", required_vars=("HONEYCOMB_API_KEY", "HONEYCOMB_DATASET")),
    Provider(slug="http", name="HTTP", required_vars=("HTTP_URL", "HTTP_TOKEN")),
    Provider(slug="humio", name="Humio", required_vars=("HUMIO_TOKEN",)),
    Provider(slug="mezmo", name="Mezmo", required_vars=("MEZMO_API_KEY",)),
    Provider(slug="logflare", name="Logflare", required_vars=("LOGFLARE_API_KEY", "LOGFLARE_SOURCE_TOKEN")),
    Provider(slug="logtail", name="Logtail", auto=True, token_secret="LOGTAIL_TOKEN"),
    Provider(slug="loki", name="Loki", required_vars=("LOKI_URL", "LOKI_USERNAME", "LOKI_PASSWORD")),
    Provider(
        slug="new_relic",
        name="New Relic",
        required_vars=("NEW_RELIC_REGION", "NEW_RELIC_ACCOUNT_ID"),
        optional_vars=("NEW_RELIC_LICENSE_KEY", "NEW_RELIC_INSERT_KEY"),
    ),
    Provider(
        slug="papertrail",
        name="Papertrail",
        required_vars=("PAPERTRAIL_ENDPOINT",),
        optional_vars=("PAPERTRAIL_ENCODING_CODEC",),
    ),
    Provider(slug="sematext", name="Sematext", required_vars=("SEMATEXT_REGION", "SEMATEXT_TOKEN")),
    Provider(
        slug="uptrace",
        name="Uptrace",
        required_vars=("UPTRACE_API_KEY", "UPTRACE_PROJECT"),
        optional_vars=("UPTRACE_SINK_INPUT", "UPTRACE_SINK_ENCODING"),
    ),
)

_BY_SLUG: Mapping[str, Provider] = MappingProxyType({p.slug: p for p in _PROVIDERS})

# Provider slug -> GraphQL AddOnType. Only these slugs can be provisioned as add-ons.
ADD_ON_TYPES: Mapping[str, str] = MappingProxyType(
    {
        "logtail": "logtail",
        "upstash_redis": "upstash_redis",
    }
)

if len(_BY_SLUG) != len(_PROVIDERS):
    raise RuntimeError("Duplicate provider slug in provider catalog")


def list_providers() -> tuple[Provider, ...]:
    return _PROVIDERS


def lookup(slug: str) -> Optional[Provider]:
    return _BY_SLUG.get(slug)
